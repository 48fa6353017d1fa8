from __future__ import annotations

import pytest

from flexitree.__main__ import main


@pytest.fixture
def input_file(tmp_path, sample_conllu):
    path = tmp_path / "sample.conllu"
    path.write_text(sample_conllu, encoding="utf-8")
    return path


def test_show_prints_projection_table(input_file, capsys):
    assert main(["show", "--input", str(input_file)]) == 0
    out = capsys.readouterr().out
    assert "# sent_id = s1" in out
    assert "multiword-3-4" in out
    assert "dep_5_2" in out
    assert "[flexitree] Progress: 18/18 (100%)" in out


def test_show_lock_is_remembered(input_file, capsys):
    assert main(["show", "--input", str(input_file), "--lock", "form-2"]) == 0
    assert "[flexitree] Locked: form-2" in capsys.readouterr().out

    assert main(["show", "--input", str(input_file)]) == 0
    assert "[flexitree] Locked: form-2" in capsys.readouterr().out

    assert main(["show", "--input", str(input_file), "--unlock"]) == 0
    assert "Locked:" not in capsys.readouterr().out


def test_show_unknown_lock_target(input_file, capsys):
    assert main(["show", "--input", str(input_file), "--lock", "form-99"]) == 1
    assert "[flexitree] Error:" in capsys.readouterr().err


def test_edit_writes_conllu(input_file, tmp_path):
    output = tmp_path / "out.conllu"
    code = main(
        [
            "edit",
            "--input",
            str(input_file),
            "--op",
            "combine:1:2",
            "--op",
            "set:5:upos:PROPN",
            "--output",
            str(output),
        ]
    )
    assert code == 0
    written = output.read_text(encoding="utf-8")
    assert "1-2\tIlva" in written
    assert "5\tmarché\tmarché\tPROPN" in written


def test_edit_to_stdout_with_subtyped_relation(input_file, capsys):
    assert main(["--debug", "edit", "--input", str(input_file), "--op", "add-head:1:5:nsubj:pass"]) == 0
    assert "1\tIl\til\tPRON\t_\t_\t5\tnsubj:pass" in capsys.readouterr().out


def test_edit_reports_rejected_operation(input_file, capsys):
    assert main(["edit", "--input", str(input_file), "--op", "combine:1:5"]) == 1
    assert "not-adjacent" in capsys.readouterr().err


@pytest.mark.parametrize("op", ["explode:1", "combine:1", "remove-head:1:42", "split:1:x"])
def test_edit_rejects_bad_operations(input_file, capsys, op):
    assert main(["edit", "--input", str(input_file), "--op", op]) == 1
    assert "[flexitree] Error:" in capsys.readouterr().err


def test_missing_input(tmp_path, capsys):
    assert main(["show", "--input", str(tmp_path / "missing.conllu")]) == 1
    assert "input file not found" in capsys.readouterr().err


def test_config_set_and_show(capsys):
    assert main(["config", "--set-direction", "rtl", "--set-enhanced", "true"]) == 0
    assert main(["config", "--show"]) == 0
    out = capsys.readouterr().out
    assert "Reading direction: rtl" in out
    assert "Enhanced dependencies: True" in out


def test_config_without_options(capsys):
    assert main(["config"]) == 1


def test_debug_edit_on_sentence_with_subtoken_heads(tmp_path, capsys):
    path = tmp_path / "vamonos.conllu"
    path.write_text(
        "1-2\tvámonos\t_\t_\t_\t_\t_\t_\t_\t_\n"
        "1\tvamos\tir\tVERB\t_\t_\t0\troot\t_\t_\n"
        "2\tnos\tnosotros\tPRON\t_\t_\t1\tobj\t_\t_\n"
        "3\t!\t!\tPUNCT\t_\t_\t1\tpunct\t_\t_\n",
        encoding="utf-8",
    )
    assert main(["--debug", "edit", "--input", str(path), "--op", "set:3:upos:SYM"]) == 0
    out = capsys.readouterr().out
    assert "2\tnos\tnosotros\tPRON\t_\t_\t1\tobj" in out
    assert "3\t!\t!\tSYM\t_\t_\t1\tpunct" in out


def test_edit_combine_output_reads_back(input_file, tmp_path):
    output = tmp_path / "combined.conllu"
    assert main(["edit", "--input", str(input_file), "--op", "combine:1:2", "--output", str(output)]) == 0
    assert main(["show", "--input", str(output)]) == 0
