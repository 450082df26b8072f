import sqlite3, pytest
from sqlite_mcp.base_backend import AffectedCount
from sqlite_mcp.tools import SQLiteTools

@pytest.fixture()
def temp_db(tmp_path):
    return str(tmp_path / 'test.db')

@pytest.fixture()
def tools(temp_db):
    t = SQLiteTools(temp_db)
    yield t
    t.close()

@pytest.fixture()
def seeded_db(temp_db):
    conn = sqlite3.connect(temp_db)
    with conn:
        conn.execute("CREATE TABLE sales (id INTEGER PRIMARY KEY, region TEXT NOT NULL, amount REAL DEFAULT 0)")
        conn.executemany("INSERT INTO sales(region, amount) VALUES (?, ?)", [('north', 10.5), ('south', 20.0), ('east', 7.25)])
    conn.close()
    return temp_db


class RecordingBackend:
    """Executor stand-in that records every call; used to prove rejected calls never reach the engine."""
    def __init__(self):
        self.calls = []
    def execute_read(self, sql):
        self.calls.append(('execute_read', sql))
        return []
    def execute_write(self, sql):
        self.calls.append(('execute_write', sql))
        return AffectedCount(affected_rows=0)
    def list_tables(self):
        self.calls.append(('list_tables',))
        return []
    def describe_table(self, table_name):
        self.calls.append(('describe_table', table_name))
        return []
    def close(self):
        self.calls.append(('close',))

@pytest.fixture()
def recorder():
    return RecordingBackend()

@pytest.fixture()
def fake_tools(recorder):
    return SQLiteTools(backend=recorder)
