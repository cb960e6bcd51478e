import pytest

from pkcs11_uri import ParseErrorKinds, PKCS11Uri, PKCS11UriParseError, parse

_invalid_uris = [
    ("token=a", ParseErrorKinds.MISSING_SCHEME),
    (":token=a", ParseErrorKinds.MISSING_SCHEME),
    ("http:token=a", ParseErrorKinds.UNKNOWN_SCHEME),
    ("pkcs11:token", ParseErrorKinds.MALFORMED_ATTRIBUTE),
    ("pkcs11:token=a;;object=b", ParseErrorKinds.MALFORMED_ATTRIBUTE),
    ("pkcs11:token=a;", ParseErrorKinds.MALFORMED_ATTRIBUTE),
    ("pkcs11:?pin-value", ParseErrorKinds.MALFORMED_ATTRIBUTE),
    ("pkcs11:object=a/b", ParseErrorKinds.MALFORMED_ATTRIBUTE),
    ("pkcs11:object=a b", ParseErrorKinds.MALFORMED_ATTRIBUTE),
    ("pkcs11:object=a#b", ParseErrorKinds.MALFORMED_ATTRIBUTE),
    ("pkcs11:?module-path=/a.so;pin-value=1234", ParseErrorKinds.MALFORMED_ATTRIBUTE),
    ("pkcs11:tok_en=a", ParseErrorKinds.INVALID_ATTRIBUTE_NAME),
    ("pkcs11:=a", ParseErrorKinds.INVALID_ATTRIBUTE_NAME),
    ("pkcs11:x-=a", ParseErrorKinds.INVALID_ATTRIBUTE_NAME),
    ("pkcs11:to%6Ben=a", ParseErrorKinds.INVALID_ATTRIBUTE_NAME),
    ("pkcs11:token=a%2", ParseErrorKinds.INVALID_PERCENT_ENCODING),
    ("pkcs11:token=%zz", ParseErrorKinds.INVALID_PERCENT_ENCODING),
    ("pkcs11:token=100%", ParseErrorKinds.INVALID_PERCENT_ENCODING),
    ("pkcs11:color=red", ParseErrorKinds.UNKNOWN_ATTRIBUTE),
    ("pkcs11:Token=a", ParseErrorKinds.UNKNOWN_ATTRIBUTE),
    ("pkcs11:?pin=1234", ParseErrorKinds.UNKNOWN_ATTRIBUTE),
    ("pkcs11:pin-value=1234", ParseErrorKinds.MISPLACED_ATTRIBUTE),
    ("pkcs11:module-path=%2Flib%2Fa.so", ParseErrorKinds.MISPLACED_ATTRIBUTE),
    ("pkcs11:?token=a", ParseErrorKinds.MISPLACED_ATTRIBUTE),
    ("pkcs11:token=a;token=b", ParseErrorKinds.DUPLICATE_ATTRIBUTE),
    ("pkcs11:?pin-value=1&pin-value=1", ParseErrorKinds.DUPLICATE_ATTRIBUTE),
    ("pkcs11:type=bogus", ParseErrorKinds.INVALID_TYPE_VALUE),
    ("pkcs11:type=Private", ParseErrorKinds.INVALID_TYPE_VALUE),
    ("pkcs11:type=", ParseErrorKinds.INVALID_TYPE_VALUE),
    ("pkcs11:library-version=1.256", ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
    ("pkcs11:library-version=a.b", ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
    ("pkcs11:library-version=1.", ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
    ("pkcs11:slot-id=-1", ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
    ("pkcs11:slot-id=", ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
    ("pkcs11:object=%FF", ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
]


class TestErrors:
    @pytest.mark.parametrize("uri_str, kind", _invalid_uris)
    def test_rejected(self, uri_str, kind):
        with pytest.raises(PKCS11UriParseError) as e:
            parse(uri_str)
        assert e.value.kind is kind

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse("pkcs11:type=bogus")

    def test_valid_counterparts(self):
        assert parse("pkcs11:?pin-value=1234").pin_value == "1234"
        assert parse("pkcs11:type=private").object_type.value == "private"
        assert parse("pkcs11:x-custom=a;x-custom=b").path_attributes.get_all(
            "x-custom"
        ) == ["a", "b"]

    def test_duplicate_position(self):
        with pytest.raises(PKCS11UriParseError) as e:
            parse("pkcs11:token=a;token=b")
        assert e.value.fragment == "token"
        assert e.value.position == 15
        assert "DuplicateAttribute" in str(e.value)

    def test_percent_position(self):
        with pytest.raises(PKCS11UriParseError) as e:
            parse("pkcs11:token=a%2")
        assert e.value.fragment == "%2"
        assert e.value.position == 14

    def test_character_position(self):
        with pytest.raises(PKCS11UriParseError) as e:
            parse("pkcs11:token=a;object=a/b")
        assert e.value.fragment == "/"
        assert e.value.position == 23

    def test_type_fragment(self):
        with pytest.raises(PKCS11UriParseError) as e:
            parse("pkcs11:token=a;type=bogus")
        assert e.value.fragment == "type=bogus"
        assert e.value.position == 15

    def test_from_attributes_errors(self):
        cases = [
            ({"pin-value": "1"}, None, ParseErrorKinds.MISPLACED_ATTRIBUTE),
            (None, {"object": "a"}, ParseErrorKinds.MISPLACED_ATTRIBUTE),
            ({"colour": "red"}, None, ParseErrorKinds.UNKNOWN_ATTRIBUTE),
            ({"bad name": "x"}, None, ParseErrorKinds.INVALID_ATTRIBUTE_NAME),
            ({"id": "01"}, None, ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
            ({"slot-id": -2}, None, ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
            ({"library-version": (1, 2, 3)}, None, ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
            ({"type": "bogus"}, None, ParseErrorKinds.INVALID_TYPE_VALUE),
            ({"object": "a\udcff"}, None, ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
            (None, {"x-tag": "\ud800"}, ParseErrorKinds.INVALID_ATTRIBUTE_VALUE),
            ("token=a", None, ParseErrorKinds.MALFORMED_ATTRIBUTE),
            (None, b"pin-value=1", ParseErrorKinds.MALFORMED_ATTRIBUTE),
            ([("token", "a", "b")], None, ParseErrorKinds.MALFORMED_ATTRIBUTE),
            (
                [("token", "a"), ("token", "b")],
                None,
                ParseErrorKinds.DUPLICATE_ATTRIBUTE,
            ),
        ]
        for path, query, kind in cases:
            with pytest.raises(PKCS11UriParseError) as e:
                PKCS11Uri.from_attributes(path, query)
            assert e.value.kind is kind
