from api.shared.utils import describe_data_url, truncate_text


class TestTruncateText:
    def test_short_text_unchanged(self):
        assert truncate_text("Hello", 50) == "Hello"

    def test_boundary_unchanged(self):
        assert truncate_text("a" * 50, 50) == "a" * 50

    def test_long_text_ellipsized(self):
        assert truncate_text("a" * 51, 50) == "a" * 50 + "..."


class TestDescribeDataUrl:
    def test_png(self):
        attributes = describe_data_url("data:image/png;base64,iVBORw0KGgo=", "p.png")
        assert attributes == {"fileName": "p.png", "mimeType": "image/png", "fileSize": 8}

    def test_not_a_data_url(self):
        assert describe_data_url("iVBORw0KGgo=") == {}

    def test_undecodable_payload(self):
        attributes = describe_data_url("data:image/png;base64,@@@")
        assert attributes == {"mimeType": "image/png"}
