import pytest

from qrdrop.cli import build_parser, main


def test_simulate_recovers(capsys):
    code = main(
        ["--block-size", "64", "simulate", "--size", "2000", "--channel", "reorder", "--count", "400"]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "recovered" in out


def test_missing_source_file_exits_with_error(tmp_path, capsys):
    code = main(["send", str(tmp_path / "missing.bin"), "--gif", str(tmp_path / "x.gif")])
    assert code == 2
    assert "error" in capsys.readouterr().err


def test_receive_needs_a_source():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["receive"])


def test_send_then_receive_via_gif(tmp_path, capsys):
    pytest.importorskip("cv2")
    src = tmp_path / "note.txt"
    src.write_bytes(b"sent through qr frames, read back from a gif")
    gif = tmp_path / "note.gif"

    assert main(["--block-size", "16", "send", str(src), "--gif", str(gif), "--count", "40", "--box-size", "6"]) == 0
    assert gif.exists()

    out_dir = tmp_path / "out"
    assert main(["--block-size", "16", "receive", "--gif", str(gif), "--output", str(out_dir)]) == 0
    assert (out_dir / "note.txt").read_bytes() == src.read_bytes()
