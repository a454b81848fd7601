from typing import Optional, Tuple

from sqlmodel import Session, select

from storefront.models.shipping_structure import ShippingStructure


class ShippingRuleError(ValueError):
    pass


def sort_and_validate_rules(rules: list[dict]) -> list[dict]:
    """
    Sort rules by min_items and reject overlapping ranges.
    A rule's max_items of None means unlimited.
    """
    if not rules:
        raise ShippingRuleError("At least one shipping rule is required")

    sorted_rules = sorted(rules, key=lambda r: r["min_items"])

    for i in range(len(sorted_rules) - 1):
        current = sorted_rules[i]
        nxt = sorted_rules[i + 1]
        if current.get("max_items") is not None and current["max_items"] >= nxt["min_items"]:
            raise ShippingRuleError(
                f"Rule ranges overlap: Rule {i + 1} maxItems ({current.get('max_items')}) "
                f"must be less than Rule {i + 2} minItems ({nxt['min_items']})"
            )

    return sorted_rules


def find_applicable_rule(rules: list[dict], item_count: int) -> Optional[dict]:
    for rule in rules:
        if item_count >= rule["min_items"]:
            if rule.get("max_items") is None or item_count <= rule["max_items"]:
                return rule

    # nothing matched: the last (highest) tier applies
    return rules[-1] if rules else None


def calculate_shipping_cost(rules: list[dict], item_count: int) -> Tuple[float, Optional[dict]]:
    rule = find_applicable_rule(rules, item_count)
    if rule is None or rule.get("is_free"):
        return 0.0, rule

    cost = float(rule.get("base_cost") or 0)
    per_item = float(rule.get("cost_per_additional_item") or 0)
    if per_item > 0 and item_count > rule["min_items"]:
        cost += (item_count - rule["min_items"]) * per_item

    return round(cost, 2), rule


def unset_other_defaults(session: Session, keep_id: Optional[int]) -> None:
    """Only one structure may be the default."""
    query = select(ShippingStructure).where(ShippingStructure.is_default == True)  # noqa: E712
    for structure in session.exec(query).all():
        if structure.id != keep_id:
            structure.is_default = False
            session.add(structure)
