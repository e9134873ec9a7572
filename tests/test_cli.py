"""CLI tests using typer's CliRunner."""
import json
import textwrap

import pytest
from typer.testing import CliRunner

from src.main import EXIT_CLEAN, EXIT_FINDINGS, EXIT_USAGE, app

runner = CliRunner()

DIRTY = textwrap.dedent("""\
    import json

    def save(data):
        json.dumps(data)
        return data
""")

CLEAN = textwrap.dedent("""\
    import json

    def save(data):
        return json.dumps(data)
""")


@pytest.fixture
def project(tmp_path):
    (tmp_path / 'app.py').write_text(DIRTY)
    return tmp_path


def check(project, *args):
    return runner.invoke(app, ['check', str(project), '--root', str(project), *args])


def test_json_output(project):
    result = check(project, '--format', 'json', '--no-cache')
    assert result.exit_code == EXIT_FINDINGS, result.output
    payload = json.loads(result.stdout)
    assert payload['files_analyzed'] == 1
    [finding] = payload['findings']
    assert finding['rule_id'] == 'unused-json-operation'
    assert finding['file_path'] == 'app.py'
    assert (finding['line'], finding['column']) == (4, 5)
    assert finding['callee'] == 'json.dumps'


def test_table_output(project):
    result = check(project, '--no-cache')
    assert result.exit_code == EXIT_FINDINGS
    assert 'unused-json-operation' in result.output
    assert '1 discarded result(s)' in result.output


def test_clean_project(tmp_path):
    (tmp_path / 'app.py').write_text(CLEAN)
    result = check(tmp_path, '--no-cache')
    assert result.exit_code == EXIT_CLEAN, result.output
    assert 'No discarded results' in result.output


def test_rule_filter(project):
    result = check(project, '--rule', 'unused-re-operation', '--format', 'json', '--no-cache')
    assert result.exit_code == EXIT_CLEAN
    assert json.loads(result.stdout)['findings'] == []


def test_unknown_rule_is_a_usage_error(project):
    result = check(project, '--rule', 'unused-nothing')
    assert result.exit_code == EXIT_USAGE
    assert 'unused-nothing' in result.output


def test_custom_target_option(tmp_path):
    (tmp_path / 'app.py').write_text(textwrap.dedent("""\
        def total(items):
            pricing.compute(items)
            return items
    """))
    result = check(tmp_path, '--target', 'pricing:compute', '--format', 'json', '--no-cache')
    assert result.exit_code == EXIT_FINDINGS
    [finding] = json.loads(result.stdout)['findings']
    assert finding['rule_id'] == 'unused-custom-operation'
    assert finding['callee'] == 'pricing.compute'


def test_malformed_target_is_a_usage_error(project):
    result = check(project, '--target', 'pricing:not-a-name')
    assert result.exit_code == EXIT_USAGE


def test_dotenv_configuration(project):
    (project / '.env').write_text("RESULT_JANITOR_DISABLED_RULES=unused-json-operation\n")
    result = check(project, '--format', 'json', '--no-cache')
    assert result.exit_code == EXIT_CLEAN, result.output


def test_language_filter(project):
    result = check(project, '--language', 'javascript', '--format', 'json', '--no-cache')
    assert result.exit_code == EXIT_CLEAN
    assert json.loads(result.stdout)['files_analyzed'] == 0


def test_missing_path(tmp_path):
    result = runner.invoke(app, ['check', str(tmp_path / 'missing'), '--root', str(tmp_path)])
    assert result.exit_code == EXIT_USAGE


def test_skipped_file_listed_in_json(tmp_path):
    (tmp_path / 'broken.py').write_text("def broken(:\n")
    result = check(tmp_path, '--format', 'json', '--no-cache')
    assert result.exit_code == EXIT_CLEAN
    assert json.loads(result.stdout)['skipped'] == [{'file_path': 'broken.py', 'reason': 'syntax errors'}]


def test_cache_commands(project):
    first = check(project, '--format', 'json')
    assert first.exit_code == EXIT_FINDINGS
    assert (project / '.result_janitor_cache' / 'findings.db').exists()

    # Cached run reports the same findings
    second = check(project, '--format', 'json')
    assert json.loads(second.stdout)['findings'] == json.loads(first.stdout)['findings']

    stats = runner.invoke(app, ['cache', 'stats', str(project)])
    assert stats.exit_code == 0
    assert 'Total Files Cached' in stats.output

    cleared = runner.invoke(app, ['cache', 'clear', str(project)])
    assert cleared.exit_code == 0
    assert 'Cache cleared' in cleared.output


def test_rules_command():
    result = runner.invoke(app, ['rules'])
    assert result.exit_code == 0
    assert 'unused-os-path-operation' in result.output
    assert 'unused-path-operation' in result.output


def test_version():
    result = runner.invoke(app, ['--version'])
    assert result.exit_code == 0
    assert 'result-janitor' in result.output
