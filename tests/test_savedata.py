import pytest

from dominoes.content.savedata import decode_binary, decode_tbit, encode_binary, encode_tbit


def test_binary_record_layout() -> None:
    assert encode_binary([(1, 0, 0, 0)]) == bytes([0x04, 0x00, 0x00, 0x00, 0x00])
    assert encode_binary([(0, 0, 0, 3)]) == bytes([0x00, 0x00, 0x00, 0x00, 0x03])
    assert encode_binary([(0, -1, 0, 0)]) == bytes([0x03, 0xFF, 0xFC, 0x00, 0x00])


def test_binary_round_trip_at_field_limits() -> None:
    entries = [
        (0, 0, 0, 0),
        (63, 32767, -32768, 3),
        (63, -32768, 32767, 0),
        (5, -1, -1, 2),
    ]

    encoded = encode_binary(entries)

    assert len(encoded) == 5 * len(entries)
    assert decode_binary(encoded) == entries


def test_binary_encode_rejects_values_that_do_not_fit() -> None:
    with pytest.raises(ValueError, match="type_id 64 does not fit"):
        encode_binary([(64, 0, 0, 0)])
    with pytest.raises(ValueError, match=r"coordinate \(32768, 0\) does not fit"):
        encode_binary([(0, 32768, 0, 0)])
    with pytest.raises(ValueError, match="rotation 4 does not fit"):
        encode_binary([(0, 0, 0, 4)])


def test_binary_decode_rejects_truncated_data() -> None:
    data = encode_binary([(1, 2, 3, 1)])

    with pytest.raises(ValueError, match="corrupted save data: length 4 is not a multiple of 5"):
        decode_binary(data[:-1])


def test_binary_empty_board() -> None:
    assert encode_binary([]) == b""
    assert decode_binary(b"") == []


def test_tbit_negates_y_and_keeps_trailing_comma() -> None:
    assert encode_tbit([(2, 5, 5, 1)]) == "2,5,-5,1,"
    assert encode_tbit([(0, -3, -4, 0), (1, 0, 0, 2)]) == "0,-3,4,0,1,0,0,2,"
    assert decode_tbit("2,5,-5,1,") == [(2, 5, 5, 1)]


def test_tbit_decode_tolerates_whitespace_and_missing_trailing_comma() -> None:
    assert decode_tbit(" 1, 2, 3, 0\n") == [(1, 2, -3, 0)]
    assert decode_tbit("") == []


def test_tbit_decode_rejects_garbage() -> None:
    with pytest.raises(ValueError, match=r"token 1 \('x'\) is not an integer"):
        decode_tbit("1,x,2,0,")
    with pytest.raises(ValueError, match="3 values is not a multiple of 4"):
        decode_tbit("1,2,3,")
