import os, sqlite3
import pytest
from sqlite_mcp.errors import EngineError
from sqlite_mcp.sqlite_backend import (
    SQLiteBackend, BackendConfig, MAX_CACHE_KIB, MIN_CACHE_KIB, DEFAULT_BUSY_TIMEOUT_MS, quote_identifier,
)


def test_directory_path_rejected(tmp_path):
    with pytest.raises(ValueError) as exc:
        SQLiteBackend(str(tmp_path))
    assert 'directory' in str(exc.value)


def test_missing_parent_is_engine_error(tmp_path):
    with pytest.raises(EngineError):
        SQLiteBackend(str(tmp_path / 'no' / 'such' / 'dir' / 'x.db'))


def test_creates_database_file(tmp_path):
    db_path = tmp_path / 'new.db'
    be = SQLiteBackend(str(db_path))
    try:
        assert be.list_tables() == []
    finally:
        be.close()
    assert db_path.exists()


def test_env_clamping(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv('CACHE_SIZE_KIB', str(MAX_CACHE_KIB * 10))
    monkeypatch.setenv('BUSY_TIMEOUT_MS', '-5')
    cfg = BackendConfig.from_env()
    assert cfg.cache_kib == MAX_CACHE_KIB
    assert cfg.busy_timeout_ms == 0
    assert 'backend_config_clamped' in capsys.readouterr().err
    monkeypatch.setenv('CACHE_SIZE_KIB', '1')
    assert BackendConfig.from_env().cache_kib == MIN_CACHE_KIB


def test_invalid_env_values_warning(monkeypatch, capsys):
    monkeypatch.setenv('CACHE_SIZE_KIB', 'not-a-number')
    monkeypatch.setenv('BUSY_TIMEOUT_MS', 'bad-value')
    cfg = BackendConfig.from_env()
    captured = capsys.readouterr()
    assert 'invalid_env_int' in captured.err
    assert 'CACHE_SIZE_KIB' in captured.err
    assert 'not-a-number' in captured.err
    assert cfg.busy_timeout_ms == DEFAULT_BUSY_TIMEOUT_MS


def test_pragmas_applied(monkeypatch, tmp_path):
    monkeypatch.setenv('CACHE_SIZE_KIB', '2048')
    monkeypatch.setenv('BUSY_TIMEOUT_MS', '1234')
    monkeypatch.setenv('FOREIGN_KEYS', '1')
    be = SQLiteBackend(str(tmp_path / 'p.db'))
    try:
        hc = be.health_check()
        assert hc['cache_size'] == -2048
        assert hc['busy_timeout'] == 1234
        assert hc['foreign_keys'] == 1
    finally:
        be.close()


def test_foreign_keys_default_off(tmp_path):
    be = SQLiteBackend(str(tmp_path / 'fk.db'), config=BackendConfig())
    try:
        be.execute_write('CREATE TABLE parent (id INTEGER PRIMARY KEY)')
        be.execute_write('CREATE TABLE child (pid INTEGER REFERENCES parent(id))')
        assert be.execute_write('INSERT INTO child VALUES (99)').affected_rows == 1
    finally:
        be.close()


def test_health_check_keys(tmp_path):
    be = SQLiteBackend(str(tmp_path / 'health.db'))
    hc = be.health_check()
    assert hc['ok'] is True
    assert hc['path'].endswith('health.db')
    for k in ['foreign_keys', 'journal_mode', 'cache_size', 'busy_timeout', 'sqlite_version']:
        assert k in hc
    be.close()
    hc = be.health_check()
    assert hc['ok'] is False and 'closed' in hc['error']


def test_close_idempotent(tmp_path):
    be = SQLiteBackend(str(tmp_path / 'c.db'))
    be.close()
    be.close()
    with pytest.raises(EngineError):
        be.execute_read('SELECT 1')


def test_verify_on_connect_integrity(monkeypatch, tmp_path):
    db_path = tmp_path / 'verify.db'
    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE test (id INTEGER)")
    conn.execute("INSERT INTO test VALUES (1)")
    conn.commit()
    conn.close()
    monkeypatch.setenv('VERIFY_ON_CONNECT', '1')
    be = SQLiteBackend(str(db_path))
    try:
        assert be.execute_read("SELECT COUNT(*) AS n FROM test") == [{'n': 1}]
    finally:
        be.close()


def test_ddl_reports_zero_affected(tmp_path):
    be = SQLiteBackend(str(tmp_path / 'ddl.db'))
    try:
        assert be.execute_write('CREATE TABLE t (x)').affected_rows == 0
        assert be.execute_write('INSERT INTO t VALUES (1)').affected_rows == 1
        assert be.execute_write('DROP TABLE t').affected_rows == 0
    finally:
        be.close()


def test_multi_statement_is_engine_error(tmp_path):
    be = SQLiteBackend(str(tmp_path / 'multi.db'))
    try:
        with pytest.raises(EngineError):
            be.execute_write('CREATE TABLE a (x); CREATE TABLE b (y)')
        assert be.list_tables() == []
    finally:
        be.close()


def test_describe_table_rows(tmp_path):
    be = SQLiteBackend(str(tmp_path / 'd.db'))
    try:
        be.execute_write("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT NOT NULL DEFAULT 'anon')")
        rows = be.describe_table('t')
        assert rows[1] == {'cid': 1, 'name': 'name', 'type': 'TEXT', 'notnull': 1, 'dflt_value': "'anon'", 'pk': 0}
    finally:
        be.close()


def test_quote_identifier():
    assert quote_identifier('t') == '"t"'
    assert quote_identifier('we"ird') == '"we""ird"'


def test_verify_on_connect_garbage_file_is_engine_error(monkeypatch, tmp_path):
    db_path = tmp_path / 'garbage.db'
    db_path.write_bytes(b'this is definitely not a sqlite database file' * 20)
    monkeypatch.setenv('VERIFY_ON_CONNECT', '1')
    with pytest.raises(EngineError) as exc:
        SQLiteBackend(str(db_path))
    assert 'not a database' in str(exc.value)
