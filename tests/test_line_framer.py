from sensor_communication.communicator.line_framer import LineFramer


def test_multiple_lines_in_one_read() -> None:
    framer = LineFramer()
    assert list(framer.feed(b"OK\n-12.5\nANRITSU,A,B,C,D\n")) == ["OK", "-12.5", "ANRITSU,A,B,C,D"]
    assert framer.pending == b""


def test_partial_line_is_kept_for_next_read() -> None:
    framer = LineFramer()
    assert list(framer.feed(b"-12")) == []
    assert framer.pending == b"-12"
    assert list(framer.feed(b".5\nO")) == ["-12.5"]
    assert list(framer.feed(b"K\n")) == ["OK"]


def test_bytes_are_buffered_even_if_lines_are_not_consumed() -> None:
    framer = LineFramer()
    framer.feed(b"AB")
    assert list(framer.feed(b"C\n")) == ["ABC"]


def test_nulls_and_surrounding_whitespace_are_removed() -> None:
    framer = LineFramer()
    assert list(framer.feed(b"\x00 O\x00K \r\n")) == ["OK"]


def test_empty_lines_are_emitted() -> None:
    framer = LineFramer()
    assert list(framer.feed(b"\n\x00\n \r\nOK\n")) == ["", "", "", "OK"]


def test_clear_discards_pending_bytes() -> None:
    framer = LineFramer()
    list(framer.feed(b"garbage"))
    framer.clear()
    assert list(framer.feed(b"OK\n")) == ["OK"]
