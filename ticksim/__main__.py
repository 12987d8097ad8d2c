import sys
import logging
import argparse

from .control.Project import Project, ProjectError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ticksim", description='Run logic circuits without a window')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    info = sub.add_parser('info', help='List the elements of a project file')
    info.add_argument('file')

    run = sub.add_parser('run', help='Step a project and print a power timeline')
    run.add_argument('file')
    run.add_argument('--ticks', type=int, default=10, help='How many steps to run')
    run.add_argument('--toggle', type=int, action='append', default=[], metavar='ID',
                     help='Click an element (switch) by its saved id before running')
    run.add_argument('--press', type=int, action='append', default=[], metavar='ID',
                     help='Hold an element (button) down by its saved id while running')
    return parser


def timeline(project: Project, ticks: int, toggles=(), presses=()) -> str:
    circuit = project.circuit
    # ids are still the ones from the file right after loading
    by_id = {elem.id: elem for elem in circuit}
    watched = [elem for elem in circuit if elem.can_input or elem.can_output]

    for i in list(toggles) + list(presses):
        if i not in by_id:
            raise LookupError(f"No element with id {i}")
    for i in toggles:
        circuit.element_click_full(by_id[i])
    for i in presses:
        circuit.element_click_start(by_id[i])

    names = [f"{elem.id}:{elem.tag}" for elem in watched]
    col_width = max([len(name) for name in names] + [4]) + 2
    header = "tick".center(6) + " | " + " | ".join(name.center(col_width) for name in names)
    separator = "─" * len(header)

    table = [separator, header, separator]
    for _ in range(ticks):
        circuit.step()
        row = [("1" if elem.powered else "0").center(col_width) for elem in watched]
        table.append(str(circuit.tick).center(6) + " | " + " | ".join(row))
    table.append(separator)
    return "\n".join(table)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        project = Project.load(args.file)
    except ProjectError as e:
        print(f"Failed to load: {e}", file=sys.stderr)
        return 1

    if args.command == 'info':
        print(project.circuit.diagnose())
        return 0
    try:
        print(timeline(project, args.ticks, args.toggle, args.press))
    except LookupError as e:
        print(f"Cannot run {args.file}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
