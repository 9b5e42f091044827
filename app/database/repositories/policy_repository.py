from psycopg import sql

from app.database.connection import get_connection, table_identifier
from app.database.exceptions import PolicyNotFoundError


class PolicyRepository:
    """Read-only lookups against the policies table."""

    def __init__(self, table: str = "qq.policies") -> None:
        self._table = table_identifier(table)

    def find_customer_id(self, policy_number: str) -> str:
        """Resolve the customer that owns a policy number.

        Raises:
            PolicyNotFoundError: if no policy (or no customer) matches.
        """
        query = sql.SQL(
            "SELECT customer_id FROM {} WHERE policy_number = %s LIMIT 1"
        ).format(self._table)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (policy_number,))
                row = cur.fetchone()

        if row is None or row[0] is None:
            raise PolicyNotFoundError(f"Policy {policy_number} not found")
        return str(row[0])
