"""
Keyword rule categorizer.

Always answers: the first matching rule wins with a fixed confidence,
otherwise the family's fallback category is returned with a low one.
"""

from typing import Dict, List, Optional, Tuple

from ..models import Family, Transaction
from .base import CategorizationResult

RULE_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.1

Rule = Tuple[Tuple[str, ...], str]

FAMILY_RULES: Dict[Family, List[Rule]] = {
    Family.CREDIT_TRANSACTIONS: [
        (("payment", "receipt"), "customer_payment"),
        (("refund", "return"), "refund"),
        (("interest", "profit"), "interest"),
        (("maturity", "deposit"), "investment_maturity"),
        (("intercompany", "transfer"), "intercompany_in"),
    ],
    Family.DEBIT_TRANSACTIONS: [
        (("payroll", "salary", "employee"), "hr_payment"),
        (("fee", "charge", "commission"), "fee"),
        (("tax", "vat", "withholding"), "tax"),
        (("deposit", "investment", "placement"), "time_deposit"),
        (("intercompany", "transfer out"), "intercompany_out"),
        (("vendor", "supplier", "payment", "invoice"), "vendor_payment"),
    ],
    Family.HR_PAYMENTS: [
        (("bonus", "incentive"), "bonus"),
        (("overtime",), "overtime"),
        (("reimbursement", "expense", "allowance"), "reimbursement"),
        (("final settlement", "severance", "gratuity", "end of service"), "final_settlement"),
        (("payroll", "salary", "wage"), "salary"),
    ],
    Family.INTERCOMPANY_TRANSFERS: [
        (("repayment",), "repayment"),
        (("loan",), "loan"),
        (("advance",), "advance"),
        (("allocation",), "allocation"),
        (("funding",), "funding"),
    ],
    Family.TIME_DEPOSITS: [
        (("rollover", "roll over"), "rollover"),
        (("maturity", "matured"), "maturity"),
        (("placement", "time deposit", "term deposit", "fixed deposit", "investment"), "placement"),
    ],
}

FALLBACK_CATEGORY: Dict[Family, str] = {
    Family.CREDIT_TRANSACTIONS: "other",
    Family.DEBIT_TRANSACTIONS: "other",
    Family.HR_PAYMENTS: "salary",
    Family.INTERCOMPANY_TRANSFERS: "intercompany_transfer",
    Family.TIME_DEPOSITS: "placement",
}


def categories_for(family: Family) -> List[str]:
    """Closed category vocabulary of a family."""
    seen: List[str] = []
    for _, category in FAMILY_RULES[family]:
        if category not in seen:
            seen.append(category)
    if FALLBACK_CATEGORY[family] not in seen:
        seen.append(FALLBACK_CATEGORY[family])
    return seen


class RuleBasedCategorizer:
    name = "rule-based"

    def __init__(self, rules: Optional[Dict[Family, List[Rule]]] = None):
        self.rules = rules or FAMILY_RULES

    def categorize(self, transaction: Transaction, family: Family) -> CategorizationResult:
        description = (transaction.description or "").lower()

        for keywords, category in self.rules.get(family, []):
            if any(k in description for k in keywords):
                return CategorizationResult(category, RULE_CONFIDENCE, self.name)

        return CategorizationResult(
            FALLBACK_CATEGORY.get(family, "other"),
            FALLBACK_CONFIDENCE,
            self.name,
        )
