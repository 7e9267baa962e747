"""
Allergen guard for generated recipes.
The prompt tells the provider what to avoid; this module checks that it listened.
Known allergen codes expand to keyword lists, any other tag is matched literally.
"""

import re

from mealgen.logging import get_logger

logger = get_logger(__name__)

# Top 10 allergens (US + common international)
ALLERGEN_ONTOLOGY = {
    "milk": ["milk", "dairy", "cream", "butter", "cheese", "whey", "casein", "lactose", "yogurt", "ghee"],
    "eggs": ["egg", "eggs", "mayonnaise", "meringue"],
    "fish": ["fish", "anchovy", "salmon", "tuna", "cod", "tilapia", "sardine", "halibut"],
    "shellfish": [
        "shrimp", "crab", "lobster", "clam", "mussel", "oyster", "scallop",
        "prawn", "crayfish", "shellfish",
    ],
    "tree_nuts": [
        "almond", "walnut", "cashew", "pecan", "pistachio", "macadamia",
        "hazelnut", "brazil nut", "pine nut", "chestnut",
    ],
    "peanuts": ["peanut", "peanuts", "groundnut"],
    "wheat": ["wheat", "flour", "bread", "breadcrumb", "pasta", "gluten", "couscous", "semolina"],
    "soy": ["soy", "soya", "tofu", "tempeh", "edamame", "miso"],
    "sesame": ["sesame", "tahini", "hummus"],
    "mustard": ["mustard"],
}

# User-facing allergy labels -> ontology codes
ALLERGY_ALIASES = {
    "dairy": ["milk"],
    "lactose": ["milk"],
    "egg": ["eggs"],
    "nuts": ["tree_nuts", "peanuts"],
    "tree nuts": ["tree_nuts"],
    "peanut": ["peanuts"],
    "gluten": ["wheat"],
    "seafood": ["fish", "shellfish"],
    "soya": ["soy"],
}

# Plant-based products whose names contain a dairy keyword.
_NON_DAIRY_PHRASES = (
    "peanut butter", "almond butter", "cashew butter", "cocoa butter", "apple butter",
    "coconut milk", "coconut cream", "almond milk", "oat milk", "soy milk", "rice milk",
    "cream of tartar", "butternut",
)


def get_all_allergen_codes() -> list[str]:
    return list(ALLERGEN_ONTOLOGY.keys())


def _keywords_for(allergy: str) -> list[str]:
    tag = allergy.strip().lower()
    codes = ALLERGY_ALIASES.get(tag) or ([tag] if tag in ALLERGEN_ONTOLOGY else [])
    if not codes:
        return [tag] if tag else []
    keywords: list[str] = []
    for code in codes:
        keywords.extend(ALLERGEN_ONTOLOGY[code])
    return keywords


def _mentions(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}(?:s|es)?\b", text) is not None


def find_allergen_violations(ingredient_names: list[str], allergies: list[str]) -> list[str]:
    """
    Return "<allergy>: <ingredient>" for every ingredient that hits a declared allergy.
    Empty list means the recipe is clean.
    """
    violations: list[str] = []
    for allergy in allergies:
        keywords = _keywords_for(allergy)
        for name in ingredient_names:
            text = name.lower()
            if allergy.strip().lower() in ("milk", "dairy", "lactose"):
                for phrase in _NON_DAIRY_PHRASES:
                    text = text.replace(phrase, " ")
            if any(_mentions(text, kw) for kw in keywords):
                violations.append(f"{allergy}: {name}")
    if violations:
        logger.warning("allergens.violation count=%s violations=%s", len(violations), violations)
    return violations
