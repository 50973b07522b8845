"""
Restricted script runner for the javascript_code action.

Scripts are written in a small expression language evaluated by simpleeval:
one expression per line, the value of the last line (or of a ``return`` line)
is the script result. Only the names listed in ``build_names`` are visible.
"""
import ast
import logging
import re
from typing import Any, Callable, Dict, Optional

from simpleeval import EvalWithCompoundTypes

from .schema import RuleContext

logger = logging.getLogger(__name__)

COMMENT_PREFIXES = ('#', '//')


class ScriptError(Exception):
    """Raised when a rule script fails to evaluate"""


def extract_regex(text: Any, pattern: str, group_index: int = 0) -> Optional[str]:
    """Extract a value with a regex.

    group_index first selects among all full matches of pattern; when there is
    no such match it selects a capture group of the first match instead.
    """
    text = '' if text is None else str(text)
    try:
        matches = [match.group(0) for match in re.finditer(pattern, text)]
        if 0 <= group_index < len(matches) and matches[group_index]:
            return matches[group_index]
        first = re.search(pattern, text)
    except re.error as e:
        logger.error(f"Regex extraction error: {e}")
        return None
    if not first:
        return None
    try:
        return first.group(group_index) or None
    except IndexError:
        return None


def _console(level: int) -> Callable[..., None]:
    def write(*args):
        logger.log(level, '[Rule Script] ' + ' '.join(str(arg) for arg in args))
    return write


def _check_expression(line: str) -> None:
    """Reject lines that would bind names instead of producing a value"""
    tree = ast.parse(line)
    if len(tree.body) != 1 or not isinstance(tree.body[0], ast.Expr):
        raise ValueError('only expressions are allowed, use set_var() to store values')
    if any(isinstance(node, ast.NamedExpr) for node in ast.walk(tree)):
        raise ValueError('assignment expressions are not allowed')

class ScriptSandbox:
    """Evaluates rule scripts against a restricted view of the rule context"""

    def __init__(self, open_url: Optional[Callable[[str, str], Any]] = None):
        self.open_url = open_url

    def build_functions(self, variables: Dict[str, Any]) -> Dict[str, Callable]:
        def set_var(name, value):
            variables[str(name)] = value
            return value

        return {
            'set_var': set_var,
            'len': len,
            'str': str,
            'int': int,
            'float': float,
            'min': min,
            'max': max,
        }

    def build_names(self, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        def window_open(url, target='_blank'):
            if self.open_url is None:
                raise ScriptError('window.open is not available')
            self.open_url(str(url), target)
            return True

        return {
            'email': context.email.model_dump(by_alias=True),
            'senderInfo': context.sender_info.model_dump(by_alias=True),
            'extractedLinks': [link.model_dump(by_alias=True) for link in context.extracted_links],
            'senderScore': context.sender_score,
            'variables': variables,
            'console': {
                'log': _console(logging.INFO),
                'warn': _console(logging.WARNING),
                'error': _console(logging.ERROR),
            },
            'window': {'open': window_open, 'location': None},
            'utils': {'extractRegex': extract_regex, 'extract_regex': extract_regex},
            'null': None,
            'true': True,
            'false': False,
        }

    def run(self, code: str, context: RuleContext, variables: Dict[str, Any]) -> Any:
        """Run a script; the variables dict is mutated in place by set_var"""
        evaluator = EvalWithCompoundTypes(
            functions=self.build_functions(variables),
            names=self.build_names(context, variables),
        )
        result = None
        for number, raw_line in enumerate(code.splitlines(), start=1):
            line = raw_line.strip().rstrip(';')
            if not line or line.startswith(COMMENT_PREFIXES):
                continue
            is_return = line == 'return' or line.startswith('return ')
            if is_return:
                line = line[len('return'):].strip()
                if not line:
                    return None
            try:
                _check_expression(line)
                result = evaluator.eval(line)
            except ScriptError:
                raise
            except Exception as e:
                raise ScriptError(f"Line {number}: {e}") from e
            if is_return:
                return result
        return result
