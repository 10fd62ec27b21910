from minermap.core.document import VariableKind
from minermap.core.script import decode_script, parse_command, parse_variable_value
from minermap.core.sections import DecodeContext, Section

SCRIPT = [
    "int Count=5",
    "float Rate=1.5;",
    "bool Flag=true",
    'string Msg="Hello there"',
    "msg:Early;",
    "Start::;",
    "msg:Msg;",
    "wait:1.5:Next;",
    "(Count>3)Next;",
    "Next::;",
    "msg:Done;",
    "if(Flag)[Start]",
]


def _decode(lines: list[str]) -> tuple:
    section = Section(
        name="script",
        start_line=1,
        end_line=len(lines) + 2,
        lines=tuple((index + 2, line) for index, line in enumerate(lines)),
    )
    context = DecodeContext(section="script")
    return decode_script(section, context), context


def test_variables_are_typed() -> None:
    script, context = _decode(SCRIPT)
    assert context.warnings == []
    assert script.variables["Count"].value == 5
    assert script.variables["Rate"].value == 1.5
    assert script.variables["Flag"].value is True
    assert script.variables["Msg"].kind is VariableKind.STRING
    assert script.variables["Msg"].value == "Hello there"


def test_commands_before_first_chain_form_the_preamble() -> None:
    script, _ = _decode(SCRIPT)
    assert [command.command for command in script.preamble] == ["msg"]
    assert script.preamble[0].parameters == ["Early"]


def test_event_chains_and_guards() -> None:
    script, _ = _decode(SCRIPT)
    assert [chain.name for chain in script.events] == ["Start", "Next"]

    start = script.event("Start")
    assert start is not None
    assert start.guard is None
    assert [command.command for command in start.commands] == ["msg", "wait"]
    assert start.commands[1].parameters == ["1.5", "Next"]
    assert start.commands[1].separator == ":"
    assert start.line == 7

    following = script.event("Next")
    assert following is not None
    assert following.guard == "Count>3"
    assert following.guard_target == "Next"
    assert following.commands[-1].opaque
    assert following.commands[-1].command == "if(Flag)[Start]"


def test_guard_without_header_is_kept_as_opaque_command() -> None:
    script, _ = _decode(["Start::;", "(x>1)Other;", "msg:hi;"])
    start = script.event("Start")
    assert start is not None
    assert start.guard is None
    assert start.commands[0].opaque
    assert start.commands[0].command == "(x>1)Other;"
    assert start.commands[1].command == "msg"


def test_bad_and_duplicate_variables_warn() -> None:
    script, context = _decode(["bool Ready=maybe", "int Count=1", "int Count=2"])
    assert "Ready" not in script.variables
    assert script.variables["Count"].value == 2
    assert len(context.warnings) == 2


def test_parse_command_without_parameters() -> None:
    command = parse_command("stop:;")
    assert command.command == "stop"
    assert command.parameters == []


def test_parse_variable_value_strips_quotes_and_semicolons() -> None:
    assert parse_variable_value(VariableKind.STRING, "'quoted'") == "quoted"
    assert parse_variable_value(VariableKind.INT, "12;") == 12
    assert parse_variable_value(VariableKind.BOOL, "False") is False


def test_non_finite_float_variable_is_rejected() -> None:
    script, context = _decode(["float Rate=1e999", "float Ok=2.5e-3"])
    assert "Rate" not in script.variables
    assert script.variables["Ok"].value == 0.0025
    assert len(context.warnings) == 1


def test_variables_remember_their_declaration_line() -> None:
    script, _ = _decode(["Start::;", "int Late=1"])
    assert script.variables["Late"].line == 3
