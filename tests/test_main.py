from jackc.main import compile_file, find_sources, main

GOOD = """
class Main {
    function void main() {
        do Output.printInt(1 + 2);
        return;
    }
}
"""

BAD = """
class Broken {
    function void main() {
        let missing = 1;
        return;
    }
}
"""


def write(path, text):
    path.write_text(text)
    return path


def test_compile_single_file(tmp_path, capsys):
    source = write(tmp_path / "Main.jack", GOOD)
    assert main([str(source)]) == 0
    vm = (tmp_path / "Main.vm").read_text()
    assert vm.splitlines()[0] == "function Main.main 0"
    assert vm.endswith("return\n")
    assert "Compiled Main.jack -> Main.vm" in capsys.readouterr().out


def test_directory_collects_errors_and_skips_failed_output(tmp_path, capsys):
    write(tmp_path / "Main.jack", GOOD)
    write(tmp_path / "Broken.jack", BAD)
    assert main(["--serial", str(tmp_path)]) == 1
    assert (tmp_path / "Main.vm").exists()
    assert not (tmp_path / "Broken.vm").exists()
    err = capsys.readouterr().err
    assert "[Broken.jack] Broken.jack:4:" in err
    assert "undeclared identifier 'missing'" in err


def test_fail_fast_stops_at_first_error(tmp_path):
    write(tmp_path / "A.jack", BAD.replace("Broken", "A"))
    write(tmp_path / "B.jack", GOOD.replace("Main", "B"))
    assert main(["--fail-fast", str(tmp_path)]) == 1
    assert not (tmp_path / "A.vm").exists()
    assert not (tmp_path / "B.vm").exists()


def test_parallel_directory(tmp_path):
    write(tmp_path / "A.jack", GOOD.replace("Main", "A"))
    write(tmp_path / "B.jack", GOOD.replace("Main", "B"))
    assert main([str(tmp_path)]) == 0
    assert (tmp_path / "A.vm").read_text().startswith("function A.main 0")
    assert (tmp_path / "B.vm").read_text().startswith("function B.main 0")


def test_xml_mode_writes_markup(tmp_path):
    source = write(tmp_path / "Main.jack", GOOD)
    assert main(["--xml", str(source)]) == 0
    assert (tmp_path / "MainT.xml").read_text().startswith("<tokens>\n")
    assert (tmp_path / "Main.xml").read_text().startswith("<class>\n")
    assert not (tmp_path / "Main.vm").exists()


def test_invalid_utf8_is_reported_per_file(tmp_path, capsys):
    write(tmp_path / "A.jack", GOOD.replace("Main", "A"))
    (tmp_path / "B.jack").write_bytes(b"class B {\n  // caf\xff\n}\n")
    assert main(["--serial", str(tmp_path)]) == 1
    assert (tmp_path / "A.vm").exists()
    assert not (tmp_path / "B.vm").exists()
    err = capsys.readouterr().err
    assert "[B.jack] B.jack: source is not valid UTF-8" in err


def test_outputs_are_written_as_utf8(tmp_path):
    source = tmp_path / "Main.jack"
    source.write_text(
        'class Main { function void f() { do Output.printString("café"); return; } }',
        encoding="utf-8",
    )
    assert main(["--xml", str(source)]) == 0
    token_xml = (tmp_path / "MainT.xml").read_bytes().decode("utf-8")
    assert "<stringConstant> café </stringConstant>" in token_xml
    assert main([str(source)]) == 0
    assert "push constant 233" in (tmp_path / "Main.vm").read_text(encoding="utf-8")


def test_compile_file_returns_errors(tmp_path):
    name, errors = compile_file(write(tmp_path / "Broken.jack", BAD))
    assert name == "Broken.jack"
    assert len(errors) == 1


def test_find_sources_sorted(tmp_path):
    write(tmp_path / "b.jack", GOOD)
    write(tmp_path / "a.jack", GOOD)
    write(tmp_path / "notes.txt", "")
    assert [p.name for p in find_sources(tmp_path)] == ["a.jack", "b.jack"]


def test_usage_and_missing_input(tmp_path, capsys):
    assert main([]) == 2
    assert "Usage" in capsys.readouterr().err
    assert main([str(tmp_path / "nope")]) == 2
    assert "not found" in capsys.readouterr().err
    assert main([str(tmp_path)]) == 2
    assert "No .jack files" in capsys.readouterr().err


def test_rejects_non_jack_file(tmp_path, capsys):
    other = write(tmp_path / "Main.txt", GOOD)
    assert main([str(other)]) == 2
    assert "expected .jack file" in capsys.readouterr().err
