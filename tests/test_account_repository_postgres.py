import unittest
from unittest.mock import MagicMock, patch

import psycopg2
from psycopg2 import errors as pg_errors

from domain.errors import StoreUnavailableError
from infrastructure.db.account_repository_postgres import PostgresAccountRepository

CONNECT = "infrastructure.db.account_repository_postgres.psycopg2.connect"


def _connection(execute=None) -> MagicMock:
    conn = MagicMock()
    cur = conn.cursor.return_value.__enter__.return_value
    if execute is not None:
        cur.execute.side_effect = execute
    return conn


class PostgresAccountRepositoryTests(unittest.TestCase):
    def test_table_setup_creates_partial_unique_index(self):
        conn = _connection()
        with patch(CONNECT, return_value=conn):
            PostgresAccountRepository({"dbname": "minecraft"})

        cur = conn.cursor.return_value.__enter__.return_value
        statements = " ".join(call.args[0] for call in cur.execute.call_args_list)
        self.assertIn("CREATE TABLE IF NOT EXISTS accounts", statements)
        self.assertIn("CREATE UNIQUE INDEX IF NOT EXISTS", statements)
        self.assertIn("WHERE linked_identity IS NOT NULL", statements)
        conn.close.assert_called_once()

    def test_unique_violation_on_link_means_not_linked(self):
        def execute(sql, params=None):
            if sql.strip().startswith("UPDATE"):
                raise pg_errors.UniqueViolation("duplicate key value")

        with patch(CONNECT, side_effect=lambda **_: _connection(execute)):
            repo = PostgresAccountRepository({"dbname": "minecraft"})
            self.assertFalse(repo.link_account("a2", "disc#1"))

    def test_link_reports_updated_row(self):
        conn = _connection()
        conn.cursor.return_value.__enter__.return_value.rowcount = 1

        with patch(CONNECT, return_value=conn):
            repo = PostgresAccountRepository({"dbname": "minecraft"})
            self.assertTrue(repo.link_account("a1", "disc#1"))

    def test_connection_failure_is_store_unavailable(self):
        with patch(CONNECT, side_effect=psycopg2.OperationalError("refused")):
            with self.assertRaises(StoreUnavailableError):
                PostgresAccountRepository({"dbname": "minecraft"})

    def test_table_setup_failure_is_store_unavailable(self):
        def execute(sql, params=None):
            raise psycopg2.ProgrammingError("permission denied for schema public")

        with patch(CONNECT, return_value=_connection(execute)):
            with self.assertRaises(StoreUnavailableError):
                PostgresAccountRepository({"dbname": "minecraft"})


if __name__ == "__main__":
    unittest.main()
