"""Isolated evaluation of JavaScript literals embedded in Seafile pages.

Seafile renders the metadata of a single file share as a script assignment
(``window.shared = {...};``) rather than as JSON. The literal may use unquoted
keys, trailing commas or computed values, so it is evaluated by a QuickJS
interpreter with no host bindings and converted to JSON by the interpreter
itself.
"""

import json
import logging
from typing import Any

import quickjs

from .errors import InvalidShare

logger = logging.getLogger(__name__)

MEMORY_LIMIT = 16 * 1024 * 1024
TIME_LIMIT = 5


class ScriptSandbox:
    """A capability-free JavaScript evaluator."""

    def __init__(self, memory_limit: int = MEMORY_LIMIT, time_limit: float = TIME_LIMIT) -> None:
        """Initialize the sandbox.

        Args:
            memory_limit (int): Heap limit of each interpreter, in bytes.
            time_limit (float): CPU time limit of each evaluation, in seconds.
        """
        self.memory_limit = memory_limit
        self.time_limit = time_limit

    def _context(self) -> quickjs.Context:
        # a fresh context per evaluation, so no page sees globals left by another
        context = quickjs.Context()
        context.set_memory_limit(self.memory_limit)
        context.set_time_limit(self.time_limit)
        context.eval('var window = {};')
        return context

    def evaluate(self, script: str, result: str) -> Any:
        """Run a script and return the value of an expression as plain Python data.

        Args:
            script (str): The script to run, e.g. ``window.shared = {...};``.
            result (str): The expression whose value is returned, e.g. ``window.shared``.

        Returns:
            Any: The value, decoded from the interpreter's ``JSON.stringify`` output.
        """
        context = self._context()
        try:
            context.eval(script)
            encoded = context.eval(f'JSON.stringify({result})')
        except quickjs.JSException as error:
            logger.debug("[evaluate] script evaluation failed; error:%s", error)
            raise InvalidShare(f"cannot evaluate page script: {error}") from error

        if not isinstance(encoded, str):
            raise InvalidShare(f"page script does not define {result}")
        try:
            return json.loads(encoded)
        except ValueError as error:
            raise InvalidShare(f"cannot decode page script value: {error}") from error
