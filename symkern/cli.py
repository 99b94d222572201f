#!/usr/bin/env python3
"""
symkern Command-Line Interface

Provides interactive REPL, script execution, and pipe/filter modes.

Usage:
    symkern                                  # Start REPL
    symkern script.sk                        # Run script
    symkern -e "(Power (Add a b) 2)" --expand
    symkern -r simplify.rules                # REPL with rules preloaded
    echo "(Add x 0)" | symkern -r simplify.rules

Script Format:
    :precision 30
    :load simplify.rules

    @add-zero: (Add x 0) => x

    (Add (Power y 2) 0)
    :expand (Multiply a (Add b c))

Every expression is boxed in canonical form, then rewritten with the
loaded rules (bottom-up, to a fixpoint).

REPL Commands:
    :help              Show help
    :load FILE         Load rules from file
    :rules             List loaded rules
    :clear             Clear all rules
    :strict on|off     Toggle strict validation
    :precision N       Set precision (digits, or "machine")
    :angle UNIT        Set angular unit (rad, deg, grad, turn)
    :expand EXPR       Expand an expression
    :expand-all EXPR   Expand every subexpression
    :compare A B       Compare two expressions
    :quit              Exit
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .engine import ANGULAR_UNITS, Engine
from .rules import RuleSet, load_rules_from_dsl
from .sexpr import parse_all

# Try to import readline for better REPL experience
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False


class SymkernCompleter:
    """Tab completer for the symkern REPL."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":load", ":rules", ":clear",
        ":strict", ":precision", ":angle",
        ":expand", ":expand-all", ":compare",
    ]

    def __init__(self, repl: 'SymkernREPL'):
        self.repl = repl
        self.matches: List[str] = []

    def complete(self, text: str, state: int) -> Optional[str]:
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)
        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> List[str]:
        line = line.lstrip()
        if line.startswith(":angle "):
            return [u for u in ANGULAR_UNITS if u.startswith(text)]
        if line.startswith(":strict "):
            return [o for o in ("on", "off") if o.startswith(text)]
        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]
        # Operator and symbol names
        return sorted(name for name in self.repl.engine.definitions if name.startswith(text))


def count_parens(text: str) -> int:
    """Count unbalanced parentheses. Returns >0 if more open than close."""
    depth = 0
    in_comment = False
    for c in text:
        if in_comment:
            in_comment = c != '\n'
            continue
        if c == ';':
            in_comment = True
        elif c == '(':
            depth += 1
        elif c == ')':
            depth -= 1
    return depth


class SymkernREPL:
    """Interactive REPL for symkern."""

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or Engine()
        self.rules = RuleSet(self.engine)
        self.expand = None          # None, "expand" or "expand-all"
        self.running = True
        self.multi_line_buffer = ""
        self.history_file = Path.home() / ".symkern_history"

    def setup_readline(self):
        """Set up readline history and completion."""
        if not HAS_READLINE:
            return
        try:
            readline.read_history_file(self.history_file)
        except (FileNotFoundError, OSError):
            pass
        readline.set_history_length(1000)
        self.completer = SymkernCompleter(self)
        readline.set_completer(self.completer.complete)
        readline.parse_and_bind("tab: complete")
        readline.set_completer_delims(" \t\n()")

    def save_history(self):
        if HAS_READLINE:
            try:
                readline.write_history_file(self.history_file)
            except OSError:
                pass

    def load_rules(self, path: Path) -> int:
        """Append the rules of a file; returns the number loaded."""
        loaded = RuleSet.from_file(self.engine, path)
        self.rules = self.rules | loaded
        return len(loaded)

    def evaluate(self, text: str) -> str:
        """Box, rewrite and optionally expand one expression."""
        expr = self.engine.parse(text)
        if expr is None:
            return ""
        result = self.rules.replace_all(expr) if len(self.rules) else expr
        if self.expand == "expand":
            result = self.engine.expand(result)
        elif self.expand == "expand-all":
            result = self.engine.expand_all(result)
        return str(result)

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd in ("quit", "exit", "q"):
            self.running = False
            return None

        elif cmd == "load":
            if not arg:
                return "Usage: :load FILENAME"
            try:
                count = self.load_rules(Path(arg))
                return f"Loaded {count} rules from {arg}"
            except (OSError, ValueError) as e:
                return f"Error loading {arg}: {e}"

        elif cmd == "rules":
            listed = self.rules.list_rules()
            if not listed:
                return "No rules loaded"
            return "\n".join(listed)

        elif cmd == "clear":
            self.rules = RuleSet(self.engine)
            return "Cleared all rules"

        elif cmd == "strict":
            if arg.lower() in ("on", "true", "1"):
                self.engine.strict = True
            elif arg.lower() in ("off", "false", "0"):
                self.engine.strict = False
            else:
                self.engine.strict = not self.engine.strict
            return f"Strict validation {'enabled' if self.engine.strict else 'disabled'}"

        elif cmd == "precision":
            if not arg:
                return f"Precision: {self.engine.precision}"
            try:
                self.engine.precision = arg if arg == "machine" else int(arg)
            except ValueError as e:
                return f"Error: {e}"
            return f"Precision set to: {self.engine.precision}"

        elif cmd == "angle":
            if not arg:
                return f"Angular unit: {self.engine.angular_unit}"
            try:
                self.engine.angular_unit = arg
            except ValueError as e:
                return f"Error: {e}"
            return f"Angular unit set to: {arg}"

        elif cmd in ("expand", "expand-all"):
            if not arg:
                return f"Usage: :{cmd} EXPR"
            try:
                expr = self.engine.parse(arg)
                if cmd == "expand":
                    return str(self.engine.expand(expr))
                return str(self.engine.expand_all(expr))
            except (ValueError, TypeError) as e:
                return f"Error: {e}"

        elif cmd == "compare":
            try:
                exprs = parse_all(arg)
            except ValueError as e:
                return f"Error: {e}"
            if len(exprs) != 2:
                return "Usage: :compare A B"
            result = self.engine.compare(exprs[0], exprs[1])
            return "incomparable" if result is None else str(result)

        else:
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        return """symkern REPL Commands:
  :help              Show this help
  :load FILE         Load rules from file (.rules or .json)
  :rules             List all loaded rules
  :clear             Clear all rules
  :strict on|off     Toggle strict validation
  :precision N       Set precision (digits, or "machine")
  :angle UNIT        Set angular unit (rad, deg, grad, turn)
  :expand EXPR       Expand an expression
  :expand-all EXPR   Expand every subexpression
  :compare A B       Compare two expressions (-1, 0, 1 or incomparable)
  :quit              Exit

Syntax:
  @name: lhs => rhs                  Define a rule
  @name: lhs => rhs when guard       Rule with guard
  (Add x 1)                          Box and rewrite an expression
"""

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        line = line.strip()

        if not line or line.startswith("#") or line.startswith(";"):
            return None

        if line.startswith(":"):
            return self.handle_command(line)

        if "=>" in line:
            parsed = load_rules_from_dsl(self.engine, line)
            if not parsed:
                return "Error: failed to parse rule"
            self.rules = self.rules | RuleSet(self.engine, parsed)
            return f"Added {len(parsed)} rule(s)"

        try:
            return self.evaluate(line) or None
        except (ValueError, TypeError) as e:
            return f"Error: {e}"

    def run(self):
        """Run the REPL loop."""
        self.setup_readline()
        print(f"symkern {__version__}")
        print("Type :help for help, :quit to exit")
        print()

        while self.running:
            try:
                prompt = "...... " if self.multi_line_buffer else "symkern> "
                line = input(prompt)

                if self.multi_line_buffer:
                    self.multi_line_buffer += "\n" + line
                else:
                    self.multi_line_buffer = line

                depth = count_parens(self.multi_line_buffer)
                if depth > 0:
                    continue
                elif depth < 0:
                    print("Error: Unbalanced parentheses (too many closing)")
                    self.multi_line_buffer = ""
                    continue

                complete_input = self.multi_line_buffer
                self.multi_line_buffer = ""

                result = self.process_line(complete_input)
                if result:
                    print(result)

            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                if self.multi_line_buffer:
                    print("\nInput cancelled")
                    self.multi_line_buffer = ""
                else:
                    print()
                continue

        self.save_history()


class ScriptRunner:
    """Runs symkern scripts, one-shot expressions and stdin filters."""

    def __init__(self, engine: Optional[Engine] = None):
        self.repl = SymkernREPL(engine)

    def run_script(self, path: Path) -> int:
        """
        Run a script file.

        Returns:
            Exit code (0 for success)
        """
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1

        for lineno, line in enumerate(lines, 1):
            result = self.repl.process_line(line)
            if not result:
                continue
            if result.startswith("Error") or result.startswith("Unknown"):
                print(f"{path}:{lineno}: {result}", file=sys.stderr)
                return 1
            if line.strip().startswith(":") and not line.strip().startswith((":expand", ":compare")):
                # Command confirmations are not printed in script mode
                continue
            if "=>" in line:
                continue
            print(result)
        return 0

    def run_expression(self, text: str) -> int:
        result = self.repl.process_line(text)
        if result:
            print(result)
            if result.startswith("Error"):
                return 1
        return 0

    def run_stdin(self) -> int:
        for line in sys.stdin:
            result = self.repl.process_line(line)
            if result:
                print(result)
                if result.startswith("Error"):
                    return 1
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="symkern",
        description="symkern - a symbolic computation kernel",
        epilog="Examples:\n"
               "  symkern                                   Start REPL\n"
               "  symkern script.sk                         Run script\n"
               "  symkern -e '(Power (Add a b) 2)' --expand Expand an expression\n"
               "  symkern -r simplify.rules                 REPL with rules\n"
               "  echo '(Add x 0)' | symkern -r simplify.rules  Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("script", nargs="?", help="Script file to run")
    parser.add_argument("-r", "--rules", action="append", default=[],
                        help="Load rules from file (can be specified multiple times)")
    parser.add_argument("-e", "--expr", help="Evaluate a single expression")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--expand", action="store_const", const="expand", dest="expand",
                       help="Expand results")
    group.add_argument("--expand-all", action="store_const", const="expand-all", dest="expand",
                       help="Expand every subexpression of results")
    parser.add_argument("--no-strict", action="store_true",
                        help="Disable strict validation")
    parser.add_argument("--precision", default="machine",
                        help="Significant digits of approximate results, or 'machine'")
    parser.add_argument("--angular-unit", default="rad", choices=ANGULAR_UNITS,
                        help="Angular unit of trigonometric arguments")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log rule applications and inference")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Quiet mode (suppress non-essential output)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    precision = args.precision if args.precision == "machine" else None
    if precision is None:
        try:
            precision = int(args.precision)
        except ValueError:
            print(f"Invalid precision: {args.precision}", file=sys.stderr)
            sys.exit(2)

    try:
        engine = Engine(precision=precision, strict=not args.no_strict,
                        angular_unit=args.angular_unit)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    runner = ScriptRunner(engine)
    runner.repl.expand = args.expand

    for rules_file in args.rules:
        try:
            count = runner.repl.load_rules(Path(rules_file))
            if not args.quiet:
                print(f"Loaded {count} rules from {rules_file}", file=sys.stderr)
        except (OSError, ValueError) as e:
            print(f"Error loading {rules_file}: {e}", file=sys.stderr)
            sys.exit(1)

    if args.script:
        sys.exit(runner.run_script(Path(args.script)))
    elif args.expr:
        sys.exit(runner.run_expression(args.expr))
    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin())
    else:
        runner.repl.run()


if __name__ == "__main__":
    main()
