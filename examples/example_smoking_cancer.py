#!/usr/bin/env python3
"""
Smoking/Cancer Demo

Walks through the causal_theory workflow:
- Presenting a coarse theory (Smoking → Cancer)
- Compiling an imperative program into a composite model
- Refining the theory through an intermediate variable (Tar)
- Validating the inclusion and a homomorphism that needs the refinement

Usage:
  python examples/example_smoking_cancer.py --mode all --verbose
"""

import sys
import os
import argparse
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from causal_theory import (
    Presentation, Refinement, Homomorphism, TheoryError,
    assign, compile_program, compose, structurally_equal,
)


# ============================================================================
# DEMO SCENARIOS
# ============================================================================

def print_header(title: str):
    """Print formatted header"""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def make_base_theory() -> Presentation:
    theory = Presentation("Smoking")
    theory.add_objects("Smoking", "Cancer")
    theory.add_generator("smokes", [], ["Smoking"])
    theory.add_generator("causes", ["Smoking"], ["Cancer"])
    return theory


def scenario_theory():
    """Scenario 1: A coarse causal theory"""
    print_header("SCENARIO 1: Presenting a Theory")

    theory = make_base_theory()
    print(theory.summary())
    return theory


def scenario_program(theory: Presentation):
    """
    Scenario 2: Compiling a program

    s := smokes()
    c := causes(s)
    return (s, c)
    """
    print_header("SCENARIO 2: Program → Composite Morphism")

    statements = [assign("s", "smokes"), assign("c", "causes", "s")]
    model = compile_program(theory, [], statements, ["s", "c"])
    print(f"Model: {model}")
    print(f"Type:  {model.type_signature}")

    print("\nRejected programs:")
    bad_programs = [
        ("unknown generator", [assign("c", "mutates", "s")]),
        ("unbound variable", [assign("c", "causes", "t")]),
        ("type mismatch", [assign("s", "smokes"), assign("c", "causes", "s"), assign("d", "causes", "c")]),
    ]
    for label, body in bad_programs:
        try:
            compile_program(theory, [], body, [])
        except TheoryError as e:
            print(f"  ✗ {label}: {type(e).__name__}: {e}")
    return model


def scenario_refinement(theory: Presentation):
    """Scenario 3: Refining Smoking → Cancer through Tar"""
    print_header("SCENARIO 3: Refinement through Tar")

    refinement = Refinement(theory, "SmokingTar")
    refinement.add_object("Tar")
    refinement.add_generator("deposits", ["Smoking"], ["Tar"])
    refinement.add_generator("induces", ["Tar"], ["Cancer"])
    via_tar = compose(refinement.generator_ref("deposits"), refinement.generator_ref("induces"))

    # A second theory that insists the direct and mediated effects agree
    observed = theory.deep_copy("Observed")
    observed.add_generator("via_tar", ["Smoking"], ["Cancer"])
    observed.add_equation(observed.generator_ref("causes"), observed.generator_ref("via_tar"))

    hom = Homomorphism(
        observed,
        refinement.presentation,
        {"Smoking": "Smoking", "Cancer": "Cancer"},
        {
            "smokes": refinement.generator_ref("smokes"),
            "causes": refinement.generator_ref("causes"),
            "via_tar": via_tar,
        },
    )

    valid, issues = hom.check()
    print(f"Before refine: valid={valid}")
    for issue in issues:
        print(f"  ✗ {issue}")

    equation = refinement.refine("causes", via_tar)
    print(f"\nAdded {equation}")

    valid, issues = hom.check()
    print(f"After refine:  valid={valid}")

    refined, inclusion = refinement.build()
    print(f"\nInclusion {inclusion!r} valid: {inclusion.is_valid()}")
    print(f"Base unchanged: {'Tar' not in theory}")
    print("\n" + refined.summary())

    # The compiled model carries over unchanged along the inclusion
    model = compile_program(theory, [], [assign("s", "smokes"), assign("c", "causes", "s")], ["c"])
    embedded = inclusion.translate(model)
    print(f"\nEmbedded model: {embedded}")
    print(f"Structurally unchanged: {structurally_equal(model, embedded)}")


# ============================================================================
# MAIN CLI
# ============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="Causal theory demo - Smoking, Tar and Cancer",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "--mode",
        choices=["theory", "program", "refinement", "all"],
        default="all",
        help="Demo scenario to run"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log presentation mutations and equation searches"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    print_header("CAUSAL THEORIES - Demo")
    print(f"Mode: {args.mode}")

    theory = scenario_theory() if args.mode in ["theory", "all"] else make_base_theory()

    if args.mode in ["program", "all"]:
        scenario_program(theory)

    if args.mode in ["refinement", "all"]:
        scenario_refinement(theory)

    print_header("DEMO COMPLETE")


if __name__ == "__main__":
    main()
