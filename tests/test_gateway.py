import io
import unittest

from botocore.exceptions import EndpointConnectionError

from cos_fs.gateway import ObjectGateway, ProviderError

from fake_cos import FakeCosClient, client_error, make_config


class ObjectGatewayTests(unittest.TestCase):
    def test_default_client_is_built_for_cos_endpoint(self):
        calls = []

        def factory(*args, **kwargs):
            calls.append((args, kwargs))
            return FakeCosClient()

        ObjectGateway(make_config(region="sh", scheme="https", timeout=12, connect_timeout=3), client_factory=factory)

        args, kwargs = calls[0]
        self.assertEqual(("s3",), args)
        self.assertEqual("https://cos.ap-shanghai.myqcloud.com", kwargs["endpoint_url"])
        self.assertEqual("ap-shanghai", kwargs["region_name"])
        self.assertEqual("AKIDexample", kwargs["aws_access_key_id"])
        self.assertEqual("secret", kwargs["aws_secret_access_key"])
        self.assertEqual(3, kwargs["config"].connect_timeout)
        self.assertEqual(12, kwargs["config"].read_timeout)

    def test_requests_use_bucket_with_app_id(self):
        client = FakeCosClient(objects={"a.txt": b"data"})
        gateway = ObjectGateway(make_config(bucket="media-1250000000"), client=client)

        gateway.get("a.txt")
        gateway.head("a.txt")

        for _, kwargs in client.calls:
            self.assertEqual("media-1250000000", kwargs["Bucket"])

    def test_upload_materializes_streams(self):
        client = FakeCosClient()
        gateway = ObjectGateway(make_config(), client=client)
        stream = io.BytesIO(b"streamed")
        stream.read()

        gateway.upload("a.bin", stream)
        gateway.upload("b.txt", "text")

        self.assertEqual(b"streamed", client.objects["a.bin"])
        self.assertEqual(b"text", client.objects["b.txt"])

    def test_upload_options_order(self):
        gateway = ObjectGateway(make_config(encrypt=True), client=FakeCosClient())

        options = gateway.upload_options(
            visibility="public-read",
            params={"ServerSideEncryption": "cos/kms", "ACL": "private", "ContentType": "text/plain"},
        )

        self.assertEqual(
            {"ServerSideEncryption": "cos/kms", "ACL": "public-read", "ContentType": "text/plain"},
            options,
        )

    def test_upload_options_without_encryption_or_visibility(self):
        gateway = ObjectGateway(make_config(), client=FakeCosClient())

        self.assertEqual({}, gateway.upload_options())
        self.assertEqual({"ServerSideEncryption": "AES256"}, ObjectGateway(make_config(encrypt=True), client=FakeCosClient()).upload_options())

    def test_copy_uses_fully_qualified_source(self):
        client = FakeCosClient()
        gateway = ObjectGateway(make_config(), client=client)

        gateway.copy("a/b.txt", "c/d.txt")

        self.assertEqual(
            [
                {
                    "Bucket": "media-1250000000",
                    "Key": "c/d.txt",
                    "CopySource": "media-1250000000.cos.ap-guangzhou.myqcloud.com/a/b.txt",
                }
            ],
            client.calls_for("copy_object"),
        )

    def test_client_errors_become_provider_errors(self):
        client = FakeCosClient(errors={"delete_object": client_error("AccessDenied", 403, "DeleteObject")})
        gateway = ObjectGateway(make_config(), client=client)

        with self.assertRaises(ProviderError) as ctx:
            gateway.delete("a.txt")

        self.assertEqual("AccessDenied", ctx.exception.code)
        self.assertEqual(403, ctx.exception.status)
        self.assertFalse(ctx.exception.not_found)
        self.assertEqual("delete_object", ctx.exception.operation)

    def test_missing_objects_are_flagged_not_found(self):
        gateway = ObjectGateway(make_config(), client=FakeCosClient())

        with self.assertRaises(ProviderError) as ctx:
            gateway.head("missing.txt")

        self.assertTrue(ctx.exception.not_found)

    def test_transport_errors_become_provider_errors(self):
        error = EndpointConnectionError(endpoint_url="https://cos.ap-guangzhou.myqcloud.com")
        gateway = ObjectGateway(make_config(), client=FakeCosClient(errors={"get_object": error}))

        with self.assertRaises(ProviderError) as ctx:
            gateway.get("a.txt")

        self.assertIsNone(ctx.exception.code)
        self.assertIs(error, ctx.exception.__cause__)

    def test_delete_many_batches_keys(self):
        client = FakeCosClient()
        gateway = ObjectGateway(make_config(), client=client)

        count = gateway.delete_many(f"k{i}" for i in range(2500))

        self.assertEqual(2500, count)
        batches = client.calls_for("delete_objects")
        self.assertEqual([1000, 1000, 500], [len(call["Delete"]["Objects"]) for call in batches])
        self.assertEqual({"Key": "k0"}, batches[0]["Delete"]["Objects"][0])

    def test_delete_many_raises_on_partial_failure(self):
        client = FakeCosClient(
            delete_objects_responses=[
                {"Errors": [{"Key": "k1", "Code": "AccessDenied", "Message": "Denied"}]}
            ]
        )
        gateway = ObjectGateway(make_config(), client=client)

        with self.assertRaises(ProviderError) as ctx:
            gateway.delete_many(["k0", "k1"])

        self.assertEqual("AccessDenied", ctx.exception.code)

    def test_presign_keeps_bucket_and_key(self):
        client = FakeCosClient()
        gateway = ObjectGateway(make_config(), client=client)

        gateway.presign("a.txt", 60, {"Key": "other", "ResponseContentType": "text/plain"})

        call = client.calls_for("generate_presigned_url")[0]
        self.assertEqual("get_object", call["ClientMethod"])
        self.assertEqual(60, call["ExpiresIn"])
        self.assertEqual(
            {"Bucket": "media-1250000000", "Key": "a.txt", "ResponseContentType": "text/plain"},
            call["Params"],
        )


if __name__ == "__main__":
    unittest.main()
