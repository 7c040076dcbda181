from pathlib import Path

import pytest

from markstamp.naming import build_output_name, dedupe_output_name


def test_build_output_name_with_tokens() -> None:
    name = build_output_name("{settings}_{stem}.{ext}", Path("灰喜鹊 001.JPG"), extension="jpg", settings_name="/tmp/brand.yaml")
    assert name == "brand_灰喜鹊_001.jpg"


def test_default_template_prefixes_stem() -> None:
    assert build_output_name("watermarked_{stem}.{ext}", Path("a.png"), extension=".JPG") == "watermarked_a.jpg"


def test_missing_extension_is_appended() -> None:
    assert build_output_name("{stem}_marked", Path("b.tif"), extension="png") == "b_marked.png"


def test_unknown_token_raises() -> None:
    with pytest.raises(ValueError):
        build_output_name("{camera}.{ext}", Path("a.jpg"), extension="jpg")


def test_dedupe_output_name_counts_case_insensitively() -> None:
    counter: dict[str, int] = {}
    assert dedupe_output_name("x.jpg", counter) == "x.jpg"
    assert dedupe_output_name("X.jpg", counter) == "X_2.jpg"
    assert dedupe_output_name("x.jpg", counter) == "x_3.jpg"
