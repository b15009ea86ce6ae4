"""Test package: point inkwell at a throwaway in-memory database before it is imported."""

import os

os.environ["APP_ENV"] = "dev"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "10"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ.pop("CLOUDINARY_CLOUD_NAME", None)
os.environ.pop("CLOUDINARY_API_KEY", None)
os.environ.pop("CLOUDINARY_API_SECRET", None)
