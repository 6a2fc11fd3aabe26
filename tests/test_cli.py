from rmlines.__main__ import main

from conftest import layer, lines_file, stroke


def test_convert_single_file(tmp_path, single_stroke_file, capsys):
    src = tmp_path / "page.rm"
    src.write_bytes(single_stroke_file)
    assert main([str(src)]) == 0
    assert (tmp_path / "page.svg").exists()
    assert "OK (1 strokes)" in capsys.readouterr().out


def test_explicit_output_and_canvas(tmp_path, single_stroke_file):
    src = tmp_path / "page.rm"
    src.write_bytes(single_stroke_file)
    out = tmp_path / "custom.svg"
    assert main([str(src), "-o", str(out), "--width", "702", "--height", "936"]) == 0
    assert 'width="702"' in out.read_text(encoding="utf-8")


def test_invalid_file_exits_non_zero(tmp_path, capsys):
    src = tmp_path / "bad.rm"
    src.write_bytes(b"\x00" * 64)
    assert main([str(src)]) == 1
    assert not (tmp_path / "bad.svg").exists()
    assert "bad.rm" in capsys.readouterr().err


def test_multiple_inputs_to_directory(tmp_path, single_stroke_file):
    first = tmp_path / "a.rm"
    second = tmp_path / "b.rm"
    first.write_bytes(single_stroke_file)
    second.write_bytes(lines_file(layer(stroke())))
    out_dir = tmp_path / "out"
    assert main([str(first), str(second), "-o", str(out_dir)]) == 0
    assert (out_dir / "a.svg").exists()
    assert (out_dir / "b.svg").exists()


def test_one_failure_does_not_stop_batch(tmp_path, single_stroke_file):
    good = tmp_path / "good.rm"
    bad = tmp_path / "bad.rm"
    good.write_bytes(single_stroke_file)
    bad.write_bytes(b"nope")
    out_dir = tmp_path / "out"
    assert main([str(bad), str(good), "-o", str(out_dir)]) == 1
    assert (out_dir / "good.svg").exists()


def test_analyze(tmp_path, single_stroke_file, capsys):
    src = tmp_path / "page.rm"
    src.write_bytes(single_stroke_file)
    assert main([str(src), "--analyze"]) == 0
    out = capsys.readouterr().out
    assert "Strokes: 1" in out
    assert "FINELINER" in out


def test_no_inputs(tmp_path, capsys):
    assert main([str(tmp_path / "missing-*.rm")]) == 1
    assert "No input files" in capsys.readouterr().err


def test_bad_config(tmp_path, single_stroke_file):
    config = tmp_path / "rmlines.toml"
    config.write_text('[render]\nwidth = "wide"\n')
    src = tmp_path / "page.rm"
    src.write_bytes(single_stroke_file)
    assert main([str(src), "-c", str(config)]) == 2


def test_failure_reported_once(tmp_path, capsys):
    src = tmp_path / "bad.rm"
    src.write_bytes(b"\x00" * 64)
    assert main([str(src), "--verbose"]) == 1
    err = capsys.readouterr().err
    assert err.count("Invalid header") == 1
    assert "bad.rm: Invalid header" in err


def test_nan_canvas_rejected(tmp_path, single_stroke_file, capsys):
    src = tmp_path / "page.rm"
    src.write_bytes(single_stroke_file)
    assert main([str(src), "--width", "nan"]) == 2
    assert not (tmp_path / "page.svg").exists()
    assert "Canvas size" in capsys.readouterr().err
