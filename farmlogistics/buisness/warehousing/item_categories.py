"""
Keyword table used to derive an inventory lot's category from its item description.
"""

DEFAULT_CATEGORY = 'other'

CATEGORY_KEYWORDS = {
    'grains': ('rice', 'wheat', 'corn', 'barley'),
    'vegetables': ('tomato', 'onion', 'potato', 'carrot'),
    'fruits': ('apple', 'mango', 'banana', 'orange'),
    'dairy': ('milk', 'cheese', 'yogurt'),
}


def categorize_item(description):
    """First category whose keyword appears in the description, else 'other'"""
    if not description:
        return DEFAULT_CATEGORY
    text = description.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY
