import pytest

from webimagemeta.errors import ImageMetaError, InvalidFormatError, ParseError


def test_invalid_format_message():
    err = InvalidFormatError("Not a valid JPEG file")
    assert str(err) == "Invalid format: Not a valid JPEG file"
    assert err.message == "Not a valid JPEG file"


def test_parse_error_message():
    err = ParseError("Invalid segment size")
    assert str(err) == "Parse error: Invalid segment size"
    assert err.message == "Invalid segment size"


@pytest.mark.parametrize("cls", [InvalidFormatError, ParseError])
def test_errors_share_base_class(cls):
    err = cls("Unexpected end of JPEG data")
    assert isinstance(err, ImageMetaError)
    assert err.message == "Unexpected end of JPEG data"


@pytest.mark.parametrize("cls", [InvalidFormatError, ParseError])
def test_errors_are_value_errors(cls):
    err = cls("Segment extends beyond file")
    assert isinstance(err, ValueError)
    assert err.args == ("Segment extends beyond file",)