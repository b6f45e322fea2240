"""
Course catalogue used by the rule-based recommender.

Each rule fires when the student has at least one strength in `gate` and
meets every minimum score of any one entry in `requires`. Rules are
evaluated in list order. Subject names are lower-case.
"""

SCIENCE_GATE = ('mathematics', 'physics', 'chemistry')
ARTS_GATE = ('economics', 'government', 'literature', 'english')
BUSINESS_GATE = ('economics', 'mathematics')

COURSE_RULES = [
    {
        "gate": SCIENCE_GATE,
        "requires": [{"mathematics": 75, "physics": 70}],
        "course": "Computer Engineering",
        "university": "UNILAG, OAU, FUTA",
        "reason": "Excellent Mathematics and Physics foundation for engineering",
        "jamb_cutoff": "260+",
        "waec_required": "Mathematics, Physics, Chemistry, English, (Biology/Further Math)",
    },
    {
        "gate": SCIENCE_GATE,
        "requires": [{"chemistry": 70, "biology": 70}],
        "course": "Medicine and Surgery",
        "university": "UI, UCH, UNILAG",
        "reason": "Strong science background suitable for medical studies",
        "jamb_cutoff": "280+",
        "waec_required": "Mathematics, Physics, Chemistry, Biology, English",
    },
    {
        "gate": SCIENCE_GATE,
        "requires": [{"mathematics": 70}],
        "course": "Mathematics/Statistics",
        "university": "ABU, UNIPORT, UNICAL",
        "reason": "Outstanding mathematical ability and analytical skills",
        "jamb_cutoff": "220+",
        "waec_required": "Mathematics, Physics, Chemistry, English, (Economics/Further Math)",
    },
    {
        "gate": ARTS_GATE,
        "requires": [{"economics": 70}],
        "course": "Economics",
        "university": "UI, UNN, UNIBEN",
        "reason": "Strong economics performance and analytical thinking",
        "jamb_cutoff": "240+",
        "waec_required": "Mathematics, Economics, English, Government/Commerce, Any Arts subject",
    },
    {
        "gate": ARTS_GATE,
        "requires": [{"government": 70}, {"literature": 70}],
        "course": "Law",
        "university": "UNILAG, UI, ABU",
        "reason": "Excellent performance in humanities and critical thinking",
        "jamb_cutoff": "270+",
        "waec_required": "English, Literature, Government, Economics/CRK/History, Mathematics",
    },
    {
        "gate": ARTS_GATE,
        "requires": [{"english": 75}],
        "course": "Mass Communication",
        "university": "UNILAG, UNIBEN, UNIPORT",
        "reason": "Strong English language and communication skills",
        "jamb_cutoff": "250+",
        "waec_required": "English, Literature, Government/Economics, Mathematics, Any Arts subject",
    },
    {
        "gate": BUSINESS_GATE,
        "requires": [{}],
        "course": "Business Administration",
        "university": "UNILAG, OAU, UNN",
        "reason": "Good business aptitude with analytical skills",
        "jamb_cutoff": "230+",
        "waec_required": "Mathematics, Economics, English, Commerce/Government, Any relevant subject",
    },
]

# Appended in order until a student has enough recommendations.
# `min_average` gates a filler on the student's overall average.
FILLER_COURSES = [
    {
        "min_average": 70,
        "course": "Accounting",
        "university": "UNILAG, UNIBEN, OAU",
        "reason": "Strong academic performance suitable for accounting",
        "jamb_cutoff": "240+",
        "waec_required": "Mathematics, Economics, English, Commerce/Government, Any relevant subject",
    },
    {
        "min_average": None,
        "course": "Public Administration",
        "university": "UI, ABU, UNICAL",
        "reason": "Good overall academic performance for public sector studies",
        "jamb_cutoff": "210+",
        "waec_required": "English, Government/Economics, Mathematics, Any Arts subjects (2)",
    },
    {
        "min_average": None,
        "course": "Education",
        "university": "UNN, UNIBEN, ABU",
        "reason": "Broad subject foundation suited to teacher education programmes",
        "jamb_cutoff": "200+",
        "waec_required": "English, Mathematics, Two subjects related to the teaching area, Any other subject",
    },
]

RECOMMENDATION_KEYS = ("course", "university", "reason", "jamb_cutoff", "waec_required")


def as_recommendation(entry):
    return {key: entry[key] for key in RECOMMENDATION_KEYS}
