import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from ghost_endnote import cli


KEY = "id:" + "ab" * 32


def test_parse_post_ids():
    assert cli.parse_post_ids(" a, b,,c ") == ["a", "b", "c"]
    assert cli.parse_post_ids(None) is None


def test_missing_post_ids_fails_fast(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    code = cli.main(["http://localhost:2368", KEY, "--post-ids", " , ", "--config", str(tmp_path / "none.json")])
    assert code == 1
    err = capsys.readouterr().err
    assert "Done with errors" in err
    assert "post_ids" in err


def test_success_summary(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)

    class FakeTool:
        def __init__(self, options):
            from ghost_endnote.migration_tool import ExecutionContext, PipelineState

            self.options = options
            self.context = ExecutionContext()
            self.context.updated.extend(["https://blog/a/", "https://blog/b/"])
            self.state = PipelineState.DONE
            self.verbose = False

        def run(self):
            return self.context

        def cancel(self):
            pass

    monkeypatch.setattr(cli, "EndnoteMigrationTool", FakeTool)
    code = cli.main(["https://blog.example.com", KEY, "--post-ids", "a,b", "--config", str(tmp_path / "none.json")])
    assert code == 0
    assert "Successfully updated 2 posts in" in capsys.readouterr().out
