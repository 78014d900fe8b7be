import os
import unittest
from io import BytesIO
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError
from starlette.datastructures import Headers, UploadFile

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("S3_ENDPOINT", "http://localhost:9000")
os.environ.setdefault("S3_ACCESS_KEY", "test")
os.environ.setdefault("S3_SECRET_KEY", "test")
os.environ.setdefault("S3_BUCKET", "test")

from app.core.errors import FileOperationError
from app.services.file_storage import FileStorage, build_object_key


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _upload(name: str, payload: bytes = b"payload") -> UploadFile:
    return UploadFile(file=BytesIO(payload), filename=name, headers=Headers({"content-type": "image/png"}))


class BuildObjectKeyTests(unittest.TestCase):
    def test_key_keeps_prefix_hint_and_safe_name(self):
        key = build_object_key("/storage/users/7/", "my photo.png", "user_img")
        self.assertTrue(key.startswith("storage/users/7/"))
        self.assertTrue(key.endswith("-user_img-my-photo.png"))

    def test_empty_name_gets_default(self):
        self.assertTrue(build_object_key("storage", "").endswith("-file.bin"))

    def test_file_name_is_slugged_and_keeps_extension(self):
        self.assertTrue(build_object_key("storage", "Résumé Final.PDF").endswith("-resume-final.pdf"))
        self.assertTrue(build_object_key("storage", "README").endswith("-readme"))


class FileStorageTests(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        patcher = patch("app.services.file_storage.boto3.client", return_value=self.client)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.storage = FileStorage()

    def test_save_puts_object_and_returns_key(self):
        key = self.storage.save(_upload("avatar.png", b"png"), "storage/users/1", "user_img")
        self.assertTrue(key.startswith("storage/users/1/"))
        kwargs = self.client.put_object.call_args.kwargs
        self.assertEqual(kwargs["Key"], key)
        self.assertEqual(kwargs["Body"], b"png")
        self.assertEqual(kwargs["ContentType"], "image/png")

    def test_missing_bucket_is_created_once(self):
        self.client.head_bucket.side_effect = _client_error("404", "HeadBucket")
        self.storage.save(_upload("a.png"), "storage")
        self.storage.save(_upload("b.png"), "storage")
        self.client.create_bucket.assert_called_once_with(Bucket=self.storage.bucket)
        self.assertEqual(self.client.head_bucket.call_count, 1)

    def test_save_failure_raises_file_operation_error(self):
        self.client.put_object.side_effect = _client_error("AccessDenied", "PutObject")
        with self.assertRaises(FileOperationError) as ctx:
            self.storage.save(_upload("avatar.png"), "storage/users/1")
        self.assertEqual(str(ctx.exception), 'Unable to save file "avatar.png"')

    def test_remove_deletes_object(self):
        self.storage.remove("storage/users/1/old.png")
        self.client.delete_object.assert_called_once_with(Bucket=self.storage.bucket, Key="storage/users/1/old.png")

    def test_remove_without_key_is_noop(self):
        self.storage.remove(None)
        self.storage.remove("")
        self.client.delete_object.assert_not_called()

    def test_remove_failure_raises_file_operation_error(self):
        self.client.delete_object.side_effect = _client_error("AccessDenied", "DeleteObject")
        with self.assertRaises(FileOperationError):
            self.storage.remove("storage/users/1/old.png")


if __name__ == "__main__":
    unittest.main()
