import io
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from callrecords.services.csv_import import (
    RowError,
    parse_call_date,
    parse_call_time,
    parse_call_records_csv,
    parse_cost,
    split_line,
)

HEADER = "CallerId,Recipient,CallDate,CallTime,Duration,Cost,Reference,Currency\n"


def test_row_date_and_time_mark_the_end_of_the_call():
    report = parse_call_records_csv((HEADER + "111,222,01/01/2023,10:00:00,60,1.50,REF001,USD").encode())

    assert report.skipped_rows == []
    [request] = report.requests
    assert request.end_time == datetime(2023, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert request.start_time == datetime(2023, 1, 1, 9, 59, tzinfo=timezone.utc)
    assert request.cost == Decimal("1.50")
    assert request.reference == "REF001"
    assert request.currency == "USD"


def test_day_comes_before_month():
    report = parse_call_records_csv((HEADER + "333,444,02/01/2023,11:30:00,120,3.00,REF002,EUR").encode())
    assert report.requests[0].end_time == datetime(2023, 1, 2, 11, 30, tzinfo=timezone.utc)


def test_text_fields_are_trimmed_and_extra_columns_ignored():
    report = parse_call_records_csv((HEADER + " 111 , 222 ,01/01/2023,10:00:00,60,1.50, REF001 , USD ,extra,more").encode())
    request = report.requests[0]
    assert (request.caller_id, request.recipient, request.reference, request.currency) == ("111", "222", "REF001", "USD")


def test_header_only_yields_nothing():
    report = parse_call_records_csv(HEADER.encode())
    assert report.requests == []
    assert report.skipped_rows == []


def test_empty_stream_yields_nothing():
    assert parse_call_records_csv(b"").requests == []


def test_blank_lines_are_skipped_silently():
    content = HEADER + "\n111,222,01/01/2023,10:00:00,60,1.50,REF001,USD\n   \n"
    report = parse_call_records_csv(content.encode())
    assert len(report.requests) == 1
    assert report.skipped_rows == []


def test_bad_rows_are_skipped_and_logged(caplog):
    content = (
        HEADER
        + "111,222,01/01/2023,10:00:00,60,1.50,REF001,USD\n"
        + "111,222,01/01/2023\n"
        + "111,222,2023-01-01,10:00:00,60,1.50,REF003,USD\n"
        + "111,222,01/01/2023,25:00:00,60,1.50,REF004,USD\n"
        + "111,222,01/01/2023,10:00:00,sixty,1.50,REF005,USD\n"
        + "111,222,01/01/2023,10:00:00,60,abc,REF006,USD\n"
        + "111,222,01/01/2023,10:00:00,60,-1,REF007,USD\n"
        + "111,222,01/01/2023,10:00:00,60,1.50,REF008,DOLLAR\n"
    )
    with caplog.at_level("WARNING"):
        report = parse_call_records_csv(content.encode())

    assert [request.reference for request in report.requests] == ["REF001"]
    assert report.skipped_rows == [3, 4, 5, 6, 7, 8, 9]
    assert len([r for r in caplog.records if r.levelname == "WARNING"]) == 7


def test_negative_duration_is_rejected():
    report = parse_call_records_csv((HEADER + "111,222,01/01/2023,10:00:00,-60,1.50,REF001,USD").encode())
    assert report.requests == []
    assert report.skipped_rows == [2]


def test_reads_file_objects_with_bom():
    stream = io.BytesIO(("\ufeff" + HEADER + "111,222,01/01/2023,10:00:00,60,1.50,REF001,USD").encode("utf-8"))
    assert len(parse_call_records_csv(stream).requests) == 1


def test_parse_call_date_requires_exact_format():
    assert parse_call_date("31/12/2024") == datetime(2024, 12, 31, tzinfo=timezone.utc)
    for value in ("1/1/2024", "31/02/2024", "2024/12/31", ""):
        with pytest.raises(RowError):
            parse_call_date(value)


def test_parse_call_time():
    assert parse_call_time("10:05:07") == timedelta(hours=10, minutes=5, seconds=7)
    assert parse_call_time("7:30") == timedelta(hours=7, minutes=30)
    for value in ("10:60:00", "abc", "10:00:00:00"):
        with pytest.raises(RowError):
            parse_call_time(value)


def test_parse_cost():
    assert parse_cost(" 2.125 ") == Decimal("2.125")
    assert parse_cost("1e1") == Decimal("10")
    for value in ("", "NaN", "Infinity", "1,5"):
        with pytest.raises(RowError):
            parse_cost(value)


def test_undecodable_row_is_skipped_without_losing_neighbours(caplog):
    content = (
        HEADER.encode()
        + b"111,222,01/01/2023,10:00:00,60,1.50,REF001,USD\n"
        + b"111,222,01/01/2023,10:00:00,60,1.50,REF\xff02,USD\n"
        + b"333,444,02/01/2023,11:30:00,120,3.00,REF003,EUR\n"
    )
    with caplog.at_level("WARNING"):
        report = parse_call_records_csv(content)

    assert [request.reference for request in report.requests] == ["REF001", "REF003"]
    assert report.skipped_rows == [3]
    assert "Skipping CSV row 3" in caplog.text


def test_stray_quote_only_spoils_its_own_row():
    content = (
        HEADER
        + '111,"222,01/01/2023,10:00:00,sixty,1.50,BAD,USD\n'
        + "111,222,01/01/2023,10:00:00,60,1.50,REF003,USD\n"
        + "111,222,01/01/2023,10:01:00,60,1.50,REF004,USD\n"
        + "111,222,01/01/2023,10:02:00,60,1.50,REF005,USD\n"
    )
    report = parse_call_records_csv(content.encode())

    assert [request.reference for request in report.requests] == ["REF003", "REF004", "REF005"]
    assert report.skipped_rows == [2]


def test_split_line_treats_quotes_literally():
    assert split_line(b'a,"b,c\r\n') == ["a", '"b', "c"]
    assert split_line(b"\n") == []
