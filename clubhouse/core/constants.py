"""Global constants for the clubhouse application."""

# Collection names
USERS_COLLECTION = "users"
PARTNERS_COLLECTION = "partners"
POSTS_COLLECTION = "thoughts"
SCORES_COLLECTION = "scores"
COURSE_LEADERS_COLLECTION = "course_leaders"

# Firestore rejects "in" filters with more than this many values
FIRESTORE_IN_QUERY_LIMIT = 10

# Account categories
CATEGORY_GOLFER = "Golfer"
CATEGORY_JUNIOR = "Junior"
CATEGORY_PROFESSIONAL = "PGA Professional"
CATEGORY_COURSE = "Course"
DEFAULT_CATEGORY = CATEGORY_GOLFER
UNKNOWN_DISPLAY_NAME = "Unknown"

# Feed sizing
DEFAULT_FEED_SIZE = 50
GLOBAL_FALLBACK_THRESHOLD = 30
GLOBAL_FALLBACK_MAX_FETCH = 20

# Context sampling
PLAYED_COURSES_SAMPLE = 50
SECOND_DEGREE_SOURCE_LIMIT = 10
SECOND_DEGREE_SAMPLE = 50

# Partner tier
PARTNER_CONTENT_LIMIT = 20

# Nearby tier
NEARBY_ACCOUNT_LIMIT = 30
NEARBY_CITY_CONTENT_LIMIT = 15
NEARBY_REGION_CONTENT_LIMIT = 10
NEARBY_EXPANSION_THRESHOLD = 15

# Home course tier
HOME_COURSE_SCORE_LIMIT = 25

# Own activity tier
OWN_ACTIVITY_LIMIT = 2
