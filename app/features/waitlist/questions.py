"""Questionnaire definitions for the consumer and vendor signup forms.

The front-end renders these as the multi-step join form; the option labels are
also what the vendor priority scoring matches against.
"""

CUISINE_OPTIONS = [
    "African",
    "Caribbean",
    "Chinese",
    "Indian",
    "Japanese",
    "Korean",
    "Thai",
    "Turkish",
    "Middle Eastern",
    "Mediterranean",
    "Italian",
    "Pastries",
    "Cakes",
    "Desserts",
]

COMPLIANCE_NONE = "None of the above"

COMPLIANCE_OPTIONS = [
    "Registered with your Local Council",
    "Level 2 Hygiene Certificate",
    "Food Safety Plan",
    "Already inspected",
    COMPLIANCE_NONE,
]

PORTIONS_PER_WEEK_OPTIONS = ["0", "1–5", "6–10", "11–20", "21–40", "40+"]

MAX_CUISINES = 3

# Answer keys that hold a cuisine multi-select
CUISINE_KEYS = ("top_cuisines", "cuisines", "sell_categories", "favourite_cuisine", "favorite_cuisine")

YES_NO = ["Yes", "No"]

CONSUMER_QUESTIONS = [
    {
        "key": "is_student",
        "label": "Are you a student?",
        "required": True,
        "type": "select",
        "options": YES_NO,
    },
    {
        "key": "top_cuisines",
        "label": "Top 3 cuisines you’d order on PeerPlates (pick up to 3)",
        "required": True,
        "type": "checkboxes",
        "options": CUISINE_OPTIONS,
        "max_selected": MAX_CUISINES,
    },
    {
        "key": "dietary_preferences",
        "label": "Dietary preferences (select all that apply)",
        "required": True,
        "type": "checkboxes",
        "options": [
            "None",
            "Halal",
            "Vegetarian",
            "Vegan",
            "Gluten-free",
            "Dairy-free",
            "High-protein / Gym meals",
            "Other",
        ],
    },
    {
        "key": "gain_from_peerplates",
        "label": "What would you like to gain from PeerPlates?",
        "required": True,
        "type": "select",
        "options": [
            "Meal prep",
            "Baked goods",
            "Homemade lunch/dinner",
            "Healthy/fitness meals",
            "Cultural/authentic meals",
            "Budget meals",
            "Snacks/desserts",
        ],
    },
    {
        "key": "budget_per_meal",
        "label": "Typical budget per meal",
        "required": True,
        "type": "select",
        "options": ["£7–£10", "£15+"],
    },
    {
        "key": "postcode_area",
        "label": "What’s your postcode area?",
        "required": True,
        "type": "text",
    },
    {
        "key": "heard_about_peerplates",
        "label": "How did you hear about PeerPlates?",
        "required": True,
        "type": "select",
        "options": ["TikTok", "Instagram", "Friend", "Poster / QR code", "Other"],
    },
]

VENDOR_QUESTIONS = [
    {
        "key": "has_food_ig",
        "label": "Do you have a food business IG page?",
        "required": True,
        "type": "select",
        "options": YES_NO,
    },
    {
        "key": "ig_handle",
        "label": "If yes, what’s your IG handle?",
        "required": False,
        "type": "text",
        "helper": "Example: @yourpage (optional if you selected No above)",
        "required_when": {"key": "has_food_ig", "equals": "Yes"},
    },
    {
        "key": "is_student",
        "label": "Are you a student?",
        "required": True,
        "type": "select",
        "options": YES_NO,
    },
    {
        "key": "university",
        "label": "Which university?",
        "required": True,
        "type": "text",
    },
    {
        "key": "currently_sell",
        "label": "Do you currently sell food already?",
        "required": True,
        "type": "select",
        "options": YES_NO,
    },
    {
        "key": "sell_categories",
        "label": "What do you sell / would you like to sell?",
        "required": True,
        "type": "checkboxes",
        "options": CUISINE_OPTIONS + ["Other"],
        "max_selected": MAX_CUISINES,
    },
    {
        "key": "postcode_area",
        "label": "What’s your postcode area?",
        "required": True,
        "type": "text",
    },
    {
        "key": "compliance_readiness",
        "label": "Compliance readiness (tick all that apply)",
        "required": True,
        "type": "checkboxes",
        "options": COMPLIANCE_OPTIONS,
    },
    {
        "key": "portions_per_week",
        "label": "How many meal portions do you currently sell per week?",
        "required": True,
        "type": "select",
        "options": PORTIONS_PER_WEEK_OPTIONS,
    },
    {
        "key": "price_range",
        "label": "Typical price range per item",
        "required": True,
        "type": "select",
        "options": ["£3–£5", "£5–£7", "£7–£10", "£10–£15", "£15+"],
    },
    {
        "key": "certificate_upload",
        "label": "Upload your hygiene certificate (optional)",
        "required": False,
        "type": "file",
    },
]


def questions_for_role(role: str) -> list[dict]:
    return VENDOR_QUESTIONS if role == "vendor" else CONSUMER_QUESTIONS
