"""
=========================================================
Command-line entry point for sqlmock.
=========================================================

Two operations are available:
    - Render the hstore expression catalogue for a server version, to see
      how each builder method translates to SQL (including the
      version-dependent subscript form)
    - Replay a JSON script of statements against a scripted mock
      database and print each result plus the recorded statement log

Script format (JSON):
    {
        "url": "mock://postgres",
        "autoid": 1,
        "numrows": [1, 0],
        "fetch": [{"id": 1, "name": "a"}],
        "columns": ["id", "name"],
        "statements": [
            {"kind": "insert", "sql": "INSERT INTO t (name) VALUES ('a')"},
            {"kind": "fetch", "sql": "SELECT * FROM t", "server": "read_only"},
            {"kind": "update", "sql": "UPDATE t SET name = 'b'", "arguments": [1]}
        ]
    }

Usage:
    # Render the hstore catalogue as PostgreSQL 14 would receive it
    python main.py --render --server-version 140000

    # Replay a script
    python main.py --replay script.json --verbose

Example:
    >>> from main import ScriptRunner
    >>>
    >>> runner = ScriptRunner()
    >>> samples = runner.render_samples(server_version=140000)
    >>> samples['h[a]']
    "h['a']"
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.logger import get_logger, setup_logging
from mockdb.responses import MockConfigurationError, MockDatabaseError
from sql.expressions import identifier
from sql.hstore_ops import hstore_op
from sql.render import RenderContext
from utils.database_utils import DatabaseConnectionError, connect, get_database_connection_info

logger = get_logger(__name__)

# Statement kinds accepted in replay scripts, mapped to dataset methods
STATEMENT_KINDS = {
    'fetch': 'all',
    'insert': 'insert',
    'update': 'update',
    'delete': 'delete',
    'ddl': None,
}

SPEC_KEYS = ('autoid', 'fetch', 'numrows', 'columns')


class ScriptError(Exception):
    """Exception raised for unreadable or invalid replay scripts."""
    pass


class ScriptRunner:
    """Render expression samples and replay scripted statement runs.

    Attributes:
        quote_identifiers: Quote identifiers in rendered samples
    """

    def __init__(self, quote_identifiers: bool = False):
        self.quote_identifiers = quote_identifiers

    def render_samples(self, server_version: Optional[int] = None) -> Dict[str, str]:
        """Render every hstore builder on column ``h`` for server_version.

        Returns:
            Mapping of a short description to the rendered SQL
        """
        ctx = RenderContext(server_version=server_version, quote_identifiers=self.quote_identifiers)
        h = hstore_op(identifier('h'))
        other = identifier('other')
        samples = {
            "h - 'a'": h - 'a',
            'h[a]': h['a'],
            'h.merge(other)': h.merge(other),
            "h.has_key('a')": h.has_key('a'),
            'h.contain_all(arr)': h.contain_all(identifier('arr')),
            'h.contain_any(arr)': h.contain_any(identifier('arr')),
            'h.contains(other)': h.contains(other),
            'h.contained_by(other)': h.contained_by(other),
            "h.defined('a')": h.defined('a'),
            "h.delete('a')": h.delete('a'),
            'h.each()': h.each(),
            'h.keys()': h.keys(),
            'h.populate(rec)': h.populate(identifier('rec')),
            'h.record_set(rec)': h.record_set(identifier('rec')),
            'h.skeys()': h.skeys(),
            'h.slice(arr)': h.slice(identifier('arr')),
            'h.svals()': h.svals(),
            'h.to_array()': h.to_array(),
            'h.to_matrix()': h.to_matrix(),
            'h.values()': h.values(),
        }
        return {name: ctx.literal(expr) for name, expr in samples.items()}

    def load_script(self, path: str) -> Dict[str, Any]:
        """Read and validate a replay script.

        Raises:
            ScriptError: If the file can't be read or is not a valid script
        """
        try:
            script = json.loads(Path(path).read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            raise ScriptError(f"Cannot read script {path}: {e}")

        if not isinstance(script, dict) or not isinstance(script.get('statements'), list):
            raise ScriptError(f"Script {path} must be an object with a 'statements' list")

        for i, statement in enumerate(script['statements']):
            if not isinstance(statement, dict) or 'sql' not in statement:
                raise ScriptError(f"Statement {i} needs a 'sql' entry")
            kind = statement.get('kind', 'ddl')
            if kind not in STATEMENT_KINDS:
                raise ScriptError(f"Statement {i} has unknown kind {kind!r}")
        return script

    def replay(self, script: Dict[str, Any]) -> Dict[str, Any]:
        """Run a loaded script against a fresh mock database.

        Returns:
            Dictionary with 'results' (one entry per statement; errors are
            reported as {'error': message}), 'sqls' (the drained log) and
            'database' (connection info)

        Raises:
            ScriptError: If the script's URL or specs can't be used
        """
        specs = {key: script[key] for key in SPEC_KEYS if key in script}
        try:
            db = connect(script.get('url'), **specs)
        except (DatabaseConnectionError, MockConfigurationError) as e:
            raise ScriptError(f"Cannot create mock database: {e}")

        ds = db.dataset()
        results: List[Any] = []
        for statement in script['statements']:
            kind = statement.get('kind', 'ddl')
            opts = {'server': statement.get('server', 'default')}
            if 'arguments' in statement:
                opts['arguments'] = statement['arguments']

            try:
                method = STATEMENT_KINDS[kind]
                if method is None:
                    result = db.execute_ddl(statement['sql'], **opts)
                else:
                    result = getattr(ds, method)(statement['sql'], **opts)
            except MockDatabaseError as e:
                if isinstance(e.orig, MockConfigurationError):
                    raise ScriptError(f"Invalid response spec: {e.orig}")
                logger.warning(f"Statement failed: {e.orig!r}")
                result = {'error': repr(e.orig)}
            results.append(result)

        return {
            'results': results,
            'sqls': db.sqls(),
            'database': get_database_connection_info(db)
        }


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line interface.

    Exit Codes:
        0: Success
        1: Error
        130: User interrupt (Ctrl+C)
    """
    parser = argparse.ArgumentParser(
        description="sqlmock - hstore expression rendering and scripted mock databases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Render the hstore catalogue for PostgreSQL 14
  python main.py --render --server-version 140000

  # Replay a statement script
  python main.py --replay script.json
        """
    )

    parser.add_argument(
        '--render',
        action='store_true',
        help='Render the hstore expression catalogue'
    )
    parser.add_argument(
        '--server-version',
        type=int,
        default=None,
        help='Server version to render for (e.g. 140000)'
    )
    parser.add_argument(
        '--quote',
        action='store_true',
        help='Quote identifiers in rendered SQL'
    )
    parser.add_argument(
        '--replay',
        metavar='SCRIPT',
        help='Replay a JSON statement script against a mock database'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging (DEBUG level, shows every statement)'
    )

    args = parser.parse_args(argv)

    setup_logging(log_level='DEBUG' if args.verbose else None)

    try:
        runner = ScriptRunner(quote_identifiers=args.quote)

        if args.render:
            version = args.server_version
            logger.info(f"Rendering hstore expressions for server version {version}")
            for name, sql in runner.render_samples(server_version=version).items():
                logger.info(f"{name:<24} {sql}")
            return 0

        elif args.replay:
            outcome = runner.replay(runner.load_script(args.replay))
            for i, result in enumerate(outcome['results'], 1):
                logger.info(f"[{i}] {result!r}")
            logger.info(f"Recorded {len(outcome['sqls'])} statement(s):")
            for sql in outcome['sqls']:
                logger.info(f"  {sql}")
            return 0

        else:
            parser.print_help()
            logger.warning("No operation specified. Use --render or --replay.")
            return 1

    except ScriptError as e:
        logger.error(f"Replay failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Operation interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
