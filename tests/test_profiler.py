import pytest

from perfaware.profiler import Profiler, ZoneMark


def fake_clock(*values):
    return iter(values).__next__


def test_nested_zone_self_and_total():
    p = Profiler()
    p.clock = fake_clock(100, 110, 150, 200)
    p.begin()
    mark = p.zone_begin(2, "a", 10)
    p.zone_end(mark)
    p.end()

    main = p.zones[1]
    assert main.name == "Main"
    assert main.total_tsc == 100
    assert main.self_tsc == 60
    assert main.hit_count == 1

    a = p.zones[2]
    assert a.total_tsc == 40
    assert a.self_tsc == 40
    assert a.byte_count == 10


def test_recursive_zone_is_not_double_counted():
    p = Profiler()
    p.clock = fake_clock(5, 15, 25, 55)
    outer = p.zone_begin(2, "rec", 0)
    inner = p.zone_begin(2, "rec", 0)
    p.zone_end(inner)
    p.zone_end(outer)

    zone = p.zones[2]
    assert zone.hit_count == 2
    assert zone.total_tsc == 50
    assert zone.self_tsc == 50


def test_context_manager_zone():
    p = Profiler()
    p.begin()
    with p.zone(3, "work", 7):
        sum(range(100))
    p.end()
    zone = p.zones[3]
    assert zone.hit_count == 1
    assert zone.byte_count == 7
    assert p.zones[1].total_tsc >= zone.total_tsc


def test_index_out_of_bounds():
    p = Profiler(max_zones=8)
    with pytest.raises(IndexError):
        p.zone_begin(8, "x", 0)


def test_end_of_unstarted_zone():
    p = Profiler()
    mark = ZoneMark("x", 0, 0, 2, 0, 0)
    with pytest.raises(ValueError):
        p.zone_end(mark)


def test_end_without_begin():
    p = Profiler()
    with pytest.raises(RuntimeError):
        p.end()


def test_csv_stats():
    p = Profiler()
    p.clock = fake_clock(100, 110, 150, 200)
    p.begin()
    p.zone_end(p.zone_begin(2, "a", 10))
    p.end()
    lines = p.format_stats(1000, csv=True).splitlines()
    assert lines[0] == "Zone,Hits #,Total s,Total%,Self tsc,Self s,Self %,Data MB,GB/s"
    assert lines[1].startswith("Main,1,")
    assert lines[2].startswith("a,1,")
    assert len(lines) == 3


def test_text_stats_header():
    p = Profiler()
    p.clock = fake_clock(100, 200)
    p.begin()
    p.end()
    text = p.format_stats(1000, csv=False)
    assert "Instrumentation Profiler Stats" in text
    assert "Main" in text
    assert "???" not in text


def test_text_stats_without_begin():
    p = Profiler()
    text = p.format_stats(0, csv=False)
    assert "??? [!]" in text


def test_print_stats_writes_stderr(capsys):
    p = Profiler()
    p.clock = fake_clock(100, 200)
    p.begin()
    p.end()
    p.print_stats(1000, True)
    assert capsys.readouterr().err == p.format_stats(1000, True)