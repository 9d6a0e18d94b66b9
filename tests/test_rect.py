import pytest

from perfaware.rect import (
    BUF_A_H,
    BUF_A_W,
    BUF_B_H,
    BUF_B_W,
    clamp,
    cp_rect,
    format_buf,
    init_buf,
    main,
    sign,
)


def _dst():
    return bytearray([0xBB]) * (BUF_B_W * BUF_B_H)


@pytest.mark.parametrize("a,expected", [(-5, -1), (-1, -1), (0, 1), (7, 1)])
def test_sign(a, expected):
    assert sign(a) == expected


def test_clamp_limits():
    assert clamp(5, 0, 3) == 3
    assert clamp(-2, 0, 3) == 0
    assert clamp(2, 0, 3) == 2


def test_init_buf_holds_positions():
    buf = init_buf(24, 24)
    assert len(buf) == 24 * 24
    assert all(b == i & 0xFF for i, b in enumerate(buf))


def test_forward_copy():
    src = init_buf(BUF_A_W, BUF_A_H)
    dst = _dst()
    cp_rect(src, BUF_A_W, dst, BUF_B_W, 1, 2, 8, 9, 4, 6)
    for j in range(8):
        for i in range(8):
            assert dst[(6 + j) * BUF_B_W + 4 + i] == \
                src[(2 + j) * BUF_A_W + 1 + i]
    assert dst[6 * BUF_B_W + 3] == 0xBB
    assert dst[6 * BUF_B_W + 12] == 0xBB
    assert dst[14 * BUF_B_W + 4] == 0xBB


def test_reversed_copy_is_clipped_to_destination():
    src = init_buf(BUF_A_W, BUF_A_H)
    dst = _dst()
    cp_rect(src, BUF_A_W, dst, BUF_B_W, BUF_A_W - 1, 5, 0, 0, 18, 1)
    for j in range(6):
        for i in range(BUF_B_W - 18):
            assert dst[(1 + j) * BUF_B_W + 18 + i] == \
                src[(5 - j) * BUF_A_W + BUF_A_W - 1 - i]
    assert dst[1 * BUF_B_W + 17] == 0xBB
    assert dst[0 * BUF_B_W + 18] == 0xBB


def test_wide_source_is_clipped_on_right_edge():
    src = init_buf(BUF_A_W, BUF_A_H)
    dst = _dst()
    cp_rect(src, BUF_A_W, dst, BUF_B_W, 0, 0, 128, BUF_B_H - 1, 28, 0)
    for y in range(BUF_B_H):
        assert dst[y * BUF_B_W + 28:(y + 1) * BUF_B_W] == \
            src[y * BUF_A_W:y * BUF_A_W + 4]
        assert dst[y * BUF_B_W + 27] == 0xBB


def test_copy_past_buffers_raises():
    src = init_buf(BUF_A_W, BUF_A_H)
    with pytest.raises(IndexError):
        cp_rect(src, BUF_A_W, _dst(), BUF_B_W, 0, 0, 3, 30, 0, 0)


def test_format_buf_small():
    assert format_buf(init_buf(2, 2), 2, 2) == \
        "     0  1 \n----------\n 0: 00 01 \n 1: 02 03 \n\n"


def test_main_prints_buffers(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "Buffer A [24 x 24]" in out
    assert "Buffer B [32 x 16]" in out