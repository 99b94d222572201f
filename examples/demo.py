#!/usr/bin/env python3
"""
symkern Feature Demonstration

This script walks through boxing, validation, comparison, rewriting and
expansion.
"""

from pathlib import Path
from symkern import Engine, RuleSet, rules


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_boxing(ce: Engine):
    """Canonical boxing."""
    section("Canonical Form")

    examples = [
        "(Add a (Add b c))",
        "(Negate (Negate x))",
        "(Rational 6 8)",
        "(Complex 0 2)",
        "(Multiply 2 (Sequence x y))",
    ]
    for text in examples:
        expr = ce.parse(text)
        print(f"  {text:32} => {expr}  [{expr.type}]")


def demo_validation(ce: Engine):
    """Errors are nodes in the tree, not exceptions."""
    section("Validation")

    for text in ["(Add 1 True)", "(Sin)", "(Sin 1 2)"]:
        expr = ce.parse(text)
        print(f"  {text:16} valid={expr.is_valid}  {expr}")

    ce.declare("f", {"signature": "(integer) -> real"})
    ce.parse("(f k)")
    print(f"  after (f k): type of k is {ce.box('k').type}")


def demo_evaluation(ce: Engine):
    """Exact and approximate evaluation."""
    section("Evaluation")

    for text in ["(Add 1 (Rational 1 3))", "(Multiply 2 Pi)", "(Divide 1 0)", "(Sqrt -4)"]:
        print(f"  {text:26} exact={ce.evaluate(ce.parse(text))}  N={ce.N(ce.parse(text))}")

    big = Engine(precision=40)
    print(f"  Pi at 40 digits: {big.N('Pi')}")


def demo_comparison(ce: Engine):
    """Three-way comparison with incomparability."""
    section("Comparison")

    pairs = [("1", "2"), ("Pi", "3"), ("x", "y"), ("(Add 1 x)", "(Add x 1)")]
    for a, b in pairs:
        result = ce.compare(ce.parse(a), ce.parse(b))
        print(f"  compare({a}, {b}) = {'incomparable' if result is None else result}")


def demo_rewriting(ce: Engine):
    """Rule-based rewriting."""
    section("Rewriting")

    rs = rules(ce, [
        ("(Add x 0)", "x"),
        ("(Multiply x 1)", "x"),
        ("(Abs x)", "x", "(GreaterEqual x 0)"),
    ])
    for text in ["(Add (Power y 2) 0)", "(Abs 5)", "(Abs -5)", "(Sin (Add (Multiply z 1) 0))"]:
        expr = ce.parse(text)
        print(f"  {text:32} replace={rs.replace(expr)}  replace_all={rs.replace_all(expr)}")


def demo_file_loading(ce: Engine):
    """Rules from a file."""
    section("Loading Rules from Files")

    rs = RuleSet.from_file(ce, Path(__file__).parent / "simplify.rules")
    print(f"  Loaded {len(rs)} rules from simplify.rules")
    for line in rs.list_rules():
        print(f"    {line}")

    print("\n  Simplifications:")
    for text in ["(Add (Multiply w 1) 0)", "(Add q q)", "(Power (Multiply s 0) 1)"]:
        print(f"    {text} => {rs.replace_all(ce.parse(text))}")


def demo_expansion(ce: Engine):
    """Distribution and the multinomial theorem."""
    section("Expansion")

    for text in ["(Multiply a (Add b c))", "(Power (Add a b) 3)", "(Power (Add a b c) 2)"]:
        print(f"  {text} =>\n    {ce.expand(ce.parse(text))}")


def demo_angles():
    """Angles reduced modulo a full turn."""
    section("Angles")

    for unit, text in [("rad", "(Multiply 3 Pi)"), ("deg", "540"), ("turn", "(Rational 5 4)")]:
        ce = Engine(angular_unit=unit)
        print(f"  {text} {unit} => {ce.canonical_angle(ce.parse(text))} rad")


def main():
    """Run all demonstrations."""
    print("symkern - a symbolic computation kernel")
    print("Feature Demonstration")

    with Engine() as ce:
        demo_boxing(ce)
        demo_validation(ce)
        demo_evaluation(ce)
        demo_comparison(ce)
        demo_rewriting(ce)
        demo_file_loading(ce)
        demo_expansion(ce)
    demo_angles()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
