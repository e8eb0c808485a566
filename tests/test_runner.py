"""Data-driven tests for the PLC pipeline, one directory of .tests files per phase."""

import signal
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from plc import check, parse, run, tokenize

PHASE_TIMEOUT = 5
TESTS_DIR = Path(__file__).parent

TESTS = {
    "plc_lex": {"dir": "lexer"},
    "plc_parse": {"dir": "parser"},
    "plc_check": {"dir": "checker"},
    "plc_app": {"dir": "apps"},
}


# ---------------------------------------------------------------------------
# Timeout
# ---------------------------------------------------------------------------


def _timeout_handler(signum, frame):
    raise TimeoutError("phase timed out")


signal.signal(signal.SIGALRM, _timeout_handler)


# ---------------------------------------------------------------------------
# Spec file parsing
# ---------------------------------------------------------------------------


def parse_spec_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse a .tests file into (name, input, expected) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_specs(test_dir: Path) -> list[tuple[str, str, str]]:
    """Glob *.tests in test_dir, return (test_id, input, expected) tuples."""
    results = []
    for test_file in sorted(test_dir.glob("*.tests")):
        for name, input_code, expected in parse_spec_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


# ---------------------------------------------------------------------------
# Phase result + assertion checker
# ---------------------------------------------------------------------------


@dataclass
class PhaseResult:
    errors: list[str] = field(default_factory=list)
    tokens: list[str] = field(default_factory=list)
    prints: list[str] = field(default_factory=list)
    value: str | None = None


def check_expected(expected: str, result: PhaseResult, phase: str) -> None:
    if expected == "ok":
        if result.errors:
            pytest.fail(f"Expected ok, got error: {result.errors[0]}")
        return
    if expected.startswith("error:"):
        expected_msg = expected[6:].strip()
        if not result.errors:
            pytest.fail(f"Expected error containing '{expected_msg}', got ok")
        found = any(expected_msg.lower() in e.lower() for e in result.errors)
        if not found:
            pytest.fail(
                f"Expected error containing '{expected_msg}', got: {result.errors}"
            )
        return
    if result.errors:
        pytest.fail(f"{phase} failed: {result.errors[0]}")
    lines = expected.split("\n")
    if lines[0].strip() == "tokens:":
        want = [line.strip() for line in lines[1:] if line.strip()]
        assert result.tokens == want
        return
    want_prints: list[str] = []
    want_value: str | None = None
    for line in lines:
        line = line.strip()
        if line.startswith("print:"):
            want_prints.append(line[6:].strip())
        elif line.startswith("result:"):
            want_value = line[7:].strip()
        elif line:
            pytest.fail(f"Bad expectation line: {line}")
    assert result.prints == want_prints
    if want_value is not None:
        assert result.value == want_value


# ---------------------------------------------------------------------------
# Phase runners
# ---------------------------------------------------------------------------


def _describe(e: Exception) -> str:
    return type(e).__name__ + ": " + str(e)


def run_plc_lex(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        tokens = tokenize(source)
        return PhaseResult(tokens=[tok.kind + ":" + tok.text for tok in tokens])
    except Exception as e:
        return PhaseResult(errors=[_describe(e)])
    finally:
        signal.alarm(0)


def run_plc_parse(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        parse(source)
        return PhaseResult()
    except Exception as e:
        return PhaseResult(errors=[_describe(e)])
    finally:
        signal.alarm(0)


def run_plc_check(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        check(parse(source))
        return PhaseResult()
    except Exception as e:
        return PhaseResult(errors=[_describe(e)])
    finally:
        signal.alarm(0)


def run_plc_app(source: str) -> PhaseResult:
    try:
        signal.alarm(PHASE_TIMEOUT)
        result = run(check(parse(source)))
        return PhaseResult(
            prints=result.stdout.splitlines(), value=result.value.to_string()
        )
    except Exception as e:
        return PhaseResult(errors=[_describe(e)])
    finally:
        signal.alarm(0)


RUNNERS = {
    "plc_lex": run_plc_lex,
    "plc_parse": run_plc_parse,
    "plc_check": run_plc_check,
    "plc_app": run_plc_app,
}


# ---------------------------------------------------------------------------
# Parametrization
# ---------------------------------------------------------------------------


def pytest_generate_tests(metafunc):
    for name, cfg in TESTS.items():
        fixture = f"{name}_input"
        if fixture in metafunc.fixturenames:
            specs = discover_specs(TESTS_DIR / cfg["dir"])
            params = [pytest.param(inp, exp, id=tid) for tid, inp, exp in specs]
            metafunc.parametrize(f"{fixture},{name}_expected", params)


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------


def test_plc_lex(plc_lex_input, plc_lex_expected):
    check_expected(plc_lex_expected, RUNNERS["plc_lex"](plc_lex_input), "lex")


def test_plc_parse(plc_parse_input, plc_parse_expected):
    check_expected(plc_parse_expected, RUNNERS["plc_parse"](plc_parse_input), "parse")


def test_plc_check(plc_check_input, plc_check_expected):
    check_expected(plc_check_expected, RUNNERS["plc_check"](plc_check_input), "check")


def test_plc_app(plc_app_input, plc_app_expected):
    check_expected(plc_app_expected, RUNNERS["plc_app"](plc_app_input), "app")
