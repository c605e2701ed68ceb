import pytest

from sidekick.stats.bucket import bucket_from_path


@pytest.mark.parametrize(
    "path,expected",
    [
        ("", ""),
        ("/", ""),
        ("///", ""),
        ("/core-data/Cheques/dbo__cheques", "core-data"),
        ("noleadingslash/x", "noleadingslash"),
        ("//bucket//object", "bucket"),
        ("/bucket", "bucket"),
        ("/bucket/", "bucket"),
    ],
)
def test_bucket_from_path(path, expected):
    assert bucket_from_path(path) == expected
