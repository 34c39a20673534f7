"""Tests for the l10n-rewrite command line driver."""

import json

import pytest

from l10n_rewrite.cli import main


COMPONENT = "<template>\n  <p>Hello</p>\n</template>\n"
REWRITTEN = "<template>\n  <p>{{ $t('greeting.hello') }}</p>\n</template>\n"


@pytest.fixture
def project(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "App.vue").write_text(COMPONENT, encoding="utf-8")
    records = [{
        "filePath": "src/App.vue",
        "original": "Hello",
        "line": 2,
        "column": 6,
        "context": "template",
        "semanticId": "greeting.hello",
        "templateContext": "text-node",
    }]
    path = tmp_path / "records.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return tmp_path


class TestCli:
    def test_dry_run_leaves_files_alone(self, project, capsys):
        code = main([str(project / "records.json"), "--root", str(project), "--diff"])
        assert code == 0
        assert (project / "src" / "App.vue").read_text(encoding="utf-8") == COMPONENT
        out = capsys.readouterr().out
        assert "DRY-RUN PLAN" in out
        assert "Files to change: 1" in out
        assert "+  <p>{{ $t('greeting.hello') }}</p>" in out

    def test_apply_with_backup(self, project):
        code = main([str(project / "records.json"), "--root", str(project), "--apply", "--backup"])
        assert code == 0
        assert (project / "src" / "App.vue").read_text(encoding="utf-8") == REWRITTEN
        assert (project / "src" / "App.vue.bak").read_text(encoding="utf-8") == COMPONENT

    def test_backup_is_written_once(self, project):
        args = [str(project / "records.json"), "--root", str(project), "--apply", "--backup"]
        main(args)
        main(args)
        assert (project / "src" / "App.vue.bak").read_text(encoding="utf-8") == COMPONENT

    def test_library_options(self, project):
        code = main([
            str(project / "records.json"), "--root", str(project), "--apply",
            "--library", "i18next-vue", "--namespace", "common", "--template-function", "t",
        ])
        assert code == 0
        assert "{{ t('common:greeting.hello') }}" in (project / "src" / "App.vue").read_text(encoding="utf-8")

    def test_strip_mode(self, project):
        (project / "src" / "App.vue").write_text(
            "<script setup>\nimport { useI18n } from 'vue-i18n';\nconst { t } = useI18n();\nt('a');\n</script>\n",
            encoding="utf-8",
        )
        code = main([str(project / "records.json"), "--root", str(project), "--apply", "--strip"])
        assert code == 0
        assert (project / "src" / "App.vue").read_text(encoding="utf-8") == "<script setup>\nt('a');\n</script>\n"

    def test_broken_file_is_skipped(self, project, capsys):
        records = json.loads((project / "records.json").read_text(encoding="utf-8"))
        records.append(dict(records[0], filePath="src/Broken.vue"))
        (project / "records.json").write_text(json.dumps(records), encoding="utf-8")
        (project / "src" / "Broken.vue").write_text("<template>\n  <p>Hello</p>\n", encoding="utf-8")

        code = main([str(project / "records.json"), "--root", str(project), "--apply"])
        assert code == 1
        assert (project / "src" / "App.vue").read_text(encoding="utf-8") == REWRITTEN
        assert "SKIPPED" in capsys.readouterr().err

    def test_bad_config_exits(self, project):
        with pytest.raises(SystemExit):
            main([str(project / "records.json"), "--library", "react-intl"])

    def test_restore_mode(self, project, capsys):
        (project / "src" / "App.vue").write_text(REWRITTEN, encoding="utf-8")
        locale = project / "en.json"
        locale.write_text(json.dumps({"greeting": {"hello": "Hello"}}), encoding="utf-8")

        code = main([str(project / "records.json"), "--root", str(project), "--restore", str(locale), "--apply"])
        assert code == 0
        assert (project / "src" / "App.vue").read_text(encoding="utf-8") == COMPONENT
        assert "Missing locale keys: 0" in capsys.readouterr().out

    def test_restore_and_strip_are_exclusive(self, project):
        with pytest.raises(SystemExit):
            main([str(project / "records.json"), "--strip", "--restore", "en.json"])

    def test_missing_locale_file_exits(self, project):
        with pytest.raises(SystemExit):
            main([str(project / "records.json"), "--root", str(project), "--restore", str(project / "nope.json")])
