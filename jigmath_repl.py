import sys

from jigmath.jig_runtime import System, ParseResult, try_parse, strip_formula_prefix, setup_logging
from jigmath.jig_printer import Printer
from jigmath.jig_evaluator import render


# A basic input prompt.
def read_line(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()


def _parse_binding(arg: str):
    name, _, raw = arg.partition("=")
    if not name or not raw:
        raise ValueError(f"Expected name=value, got {arg!r}")
    return name.strip(), float(raw)


def run_formula(args) -> None:
    """Evaluate one formula with `name=value` bindings and exit with appropriate status."""
    formula, bindings = args[0], args[1:]
    result = try_parse(strip_formula_prefix(formula))
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)
    system = result.system
    for arg in bindings:
        try:
            name, value = _parse_binding(arg)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            raise SystemExit(2)
        system.set_variable(name, value)
    print(render(system.get_value()))


def _handle_command(line: str, current: System, printer: Printer) -> None:
    command, _, rest = line.partition(" ")
    if command == ":set":
        name, _, raw = rest.strip().partition(" ")
        current.set_variable(name, float(raw))
        print(render(current.get_value()))
    elif command == ":vars":
        for slot in current.variables:
            print(f"{slot.name} = {slot.value if slot.value is not None else '?'}")
    elif command == ":tree":
        print(printer.pformat_tree(current.root))
    elif command == ":simplify":
        current.simplify()
        print(current.get_literal())
    else:
        print(f"Error: unknown command {command}", file=sys.stderr)


def main():
    """Evaluate a formula when provided, otherwise start the interactive REPL."""
    args = sys.argv[1:]
    verbosity = 0
    # -v, -vv, -vvv raise the log verbosity
    while args and args[0].startswith("-v") and args[0].strip("v") == "-":
        verbosity += args[0].count("v")
        args = args[1:]
    setup_logging(verbosity)

    if args:
        run_formula(args)
        return

    print("jigmath REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    printer = Printer()
    current = None

    # REPL Loop
    while True:
        try:
            raw = read_line(">> ")
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line == "exit":
                break

            if line.startswith(":"):
                if current is None:
                    print("Error: no formula yet", file=sys.stderr)
                    continue
                _handle_command(line, current, printer)
                continue

            result: ParseResult = try_parse(strip_formula_prefix(line))
            if result.status == 'error':
                # Pretty, location-aware message
                print(result.format_error(), file=sys.stderr)
                continue

            current = result.system
            for warning in current.warnings():
                print(f"Warning: {warning.code} {warning.name}", file=sys.stderr)
            print(render(current.get_value()))

        except EOFError:
            print("\nExiting.")
            break
        except Exception as e:
            # Bad command arguments and the like
            print(f"Error: {e}", file=sys.stderr)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
