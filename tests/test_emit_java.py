"""Tests for the Java backend."""

import pytest

from plc import check, emit_java, parse


def contains_normalized(haystack: str, needle: str) -> bool:
    """Check if needle appears in haystack, normalizing line-by-line whitespace."""
    needle_lines = [line.strip() for line in needle.strip().split("\n") if line.strip()]
    haystack_lines = [line.strip() for line in haystack.split("\n") if line.strip()]
    if not needle_lines:
        return True
    for i in range(len(haystack_lines)):
        if haystack_lines[i] == needle_lines[0]:
            match = True
            for j in range(1, len(needle_lines)):
                if (
                    i + j >= len(haystack_lines)
                    or haystack_lines[i + j] != needle_lines[j]
                ):
                    match = False
                    break
            if match:
                return True
    return False


def java(text: str) -> str:
    return emit_java(check(text))


HELLO_JAVA = """\
public class Main {

    public static void main(String[] args) {
        System.exit(new Main().main());
    }

    int main() {
        System.out.println("Hello, World!");
        return 0;
    }

}
"""


def test_hello_world_exact():
    text = 'FUN main(): Integer DO print("Hello, World!"); RETURN 0; END'
    assert java(text) == HELLO_JAVA


def test_globals():
    out = java(
        """\
LIST xs: Decimal = [1.0, 2.5];
VAR count: Integer;
VAL name: String = "plc";
FUN main(): Integer DO RETURN 0; END
"""
    )
    assert contains_normalized(
        out,
        """
        public class Main {

            double[] xs = {1.0, 2.5};
            int count;
            final String name = "plc";

            public static void main(String[] args) {
        """,
    )


def test_function_signature_and_void_body():
    out = java(
        """\
FUN log(msg: String, level: Integer) DO END
FUN main(): Integer DO RETURN 0; END
"""
    )
    assert "    Void log(String msg, int level) {}" in out.split("\n")


def test_statements():
    out = java(
        """\
FUN main(): Integer DO
    LET x = 1;
    LET c: Any;
    IF x < 2 DO
        x = x + 1;
    ELSE
        x = 0;
    END
    WHILE x > 0 DO
        x = x - 1;
    END
    RETURN x;
END
"""
    )
    assert contains_normalized(
        out,
        """
        int main() {
            int x = 1;
            Object c;
            if (x < 2) {
                x = x + 1;
            } else {
                x = 0;
            }
            while (x > 0) {
                x = x - 1;
            }
            return x;
        }
        """,
    )


def test_switch_cases_break():
    out = java(
        """\
FUN main(): Integer DO
    SWITCH 'a'
        CASE 'a': print(1);
        CASE '\\n': print(2);
        DEFAULT print(3);
    END
    RETURN 0;
END
"""
    )
    assert contains_normalized(
        out,
        """
        switch ('a') {
            case 'a':
                System.out.println(1);
                break;
            case '\\n':
                System.out.println(2);
                break;
            default:
                System.out.println(3);
        }
        """,
    )


def test_expressions():
    out = java(
        """\
LIST xs: Integer = [1, 2];
FUN main(): Integer DO
    LET a: Boolean = TRUE && (1 + 2) * 3 == 9 || FALSE;
    LET p = 2 ^ 3;
    LET s = "a\\"b" + xs[0];
    LET d = 1.50 / 0.5;
    print(NIL == NIL);
    RETURN p;
END
"""
    )
    assert "boolean a = true && (1 + 2) * 3 == 9 || false;" in out
    assert "int p = Math.pow(2, 3);" in out
    assert 'String s = "a\\"b" + xs[0];' in out
    assert "double d = 1.50 / 0.5;" in out
    assert "System.out.println(null == null);" in out


def test_left_grouped_or_is_parenthesized():
    out = java(
        """\
FUN main(): Integer DO
    LET a = TRUE || FALSE && FALSE;
    RETURN 0;
END
"""
    )
    assert "boolean a = (true || false) && false;" in out


def test_right_nested_subtraction_is_parenthesized():
    out = java(
        """\
FUN main(): Integer DO
    LET a = 10 - (3 - 2);
    RETURN a;
END
"""
    )
    assert "int a = 10 - (3 - 2);" in out


def test_refuses_unchecked_source():
    with pytest.raises(TypeError):
        emit_java(parse("FUN main(): Integer DO RETURN 0; END"))  # type: ignore[arg-type]
