"""Post-hoc answer verification against a deny list of outside companies."""

from dataclasses import dataclass, field


@dataclass
class VerificationResult:
    clean: bool
    violations: list[str] = field(default_factory=list)


def verify_answer(answer: str, forbidden_terms: list[str]) -> VerificationResult:
    """
    Scan an answer for forbidden terms.

    Matching is a case-insensitive substring test. Violations are reported
    once each, in their configured spelling and configured order.

    Args:
        answer: Generated answer text
        forbidden_terms: Terms the answer must not contain

    Returns:
        VerificationResult with clean=True when no term matched
    """
    lowered = answer.lower()
    violations: list[str] = []
    seen: set[str] = set()
    for term in forbidden_terms:
        key = term.lower()
        if term and key in lowered and key not in seen:
            seen.add(key)
            violations.append(term)
    return VerificationResult(clean=not violations, violations=violations)


def effective_forbidden_terms(forbidden_terms: list[str], company_names: list[str]) -> list[str]:
    """
    Drop terms that are exactly the name of a company in the context.

    Descriptions and taglines never exempt a term; only a case-insensitive
    whole-name match does.
    """
    names = {name.strip().lower() for name in company_names}
    return [term for term in forbidden_terms if term and term.strip().lower() not in names]


def build_regeneration_prompt(system_prompt: str, violations: list[str]) -> str:
    """Augment the system instruction after an answer named outside companies."""
    named = ", ".join(violations)
    return (
        f"{system_prompt}\n\n"
        f"IMPORTANT: A previous draft mentioned {named}, which are not in the supplied "
        "portfolio list. Do not mention them. Answer again using only companies from "
        "the supplied list."
    )
