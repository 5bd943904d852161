from .s3 import S3Storage, StorageConfigError

__all__ = ["S3Storage", "StorageConfigError"]
