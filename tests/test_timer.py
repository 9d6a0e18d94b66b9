import pytest

from perfaware import timer


def test_os_timer_is_monotonic():
    first = timer.read_os_timer()
    second = timer.read_os_timer()
    assert second >= first


def test_cpu_timer_is_monotonic():
    first = timer.read_cpu_timer()
    second = timer.read_cpu_timer()
    assert second >= first


def test_estimate_is_close_to_known_frequency():
    known = timer.get_cpu_timer_freq()
    estimated = timer.estimate_cpu_timer_freq(30)
    assert known / 2 < estimated < known * 2


def test_estimate_with_zero_time_is_positive():
    assert timer.estimate_cpu_timer_freq(0) > 0


def test_estimate_rejects_negative_time():
    with pytest.raises(ValueError):
        timer.estimate_cpu_timer_freq(-1)


def test_get_or_estimate_uses_known_frequency():
    assert timer.get_or_estimate_cpu_timer_freq(300) == timer.get_cpu_timer_freq()


def test_main_help_returns_zero(capsys):
    assert timer.main(["-h"]) == 0
    assert "Usage:" in capsys.readouterr().err


def test_main_without_args_fails(capsys):
    assert timer.main([]) == 1
    assert "estimate_cpu_timer_freq" in capsys.readouterr().err


def test_main_prints_frequencies(capsys):
    assert timer.main(["5"]) == 0
    out = capsys.readouterr().out
    assert "OS timer frequency:" in out
    assert "Estimated CPU timer frequency:" in out
    assert "CPU timer frequency from the system:" in out