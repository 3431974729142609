# Configuration Module - Procedural approach with module-level variables
import os
from types import MappingProxyType
from dotenv import load_dotenv

from posture_metrics.models import IssueSeverity, PostureIssueType, PostureType

# Load environment variables
load_dotenv()

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# HTTP Service Configuration
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Pipeline Configuration
ENABLE_SMOOTHING = os.getenv("ENABLE_SMOOTHING", "true").lower() == "true"
SMOOTHING_FACTOR = float(os.getenv("SMOOTHING_FACTOR", "0.7"))  # weight of the current frame
ISSUE_DETECTION_THRESHOLD = float(os.getenv("ISSUE_DETECTION_THRESHOLD", "0.5"))
CALIBRATION_MIN_SAMPLES = int(os.getenv("CALIBRATION_MIN_SAMPLES", "30"))
MIN_POSE_CONFIDENCE = float(os.getenv("MIN_POSE_CONFIDENCE", "0.3"))

# Keypoint Schema
NUM_KEYPOINTS = 14
HIGH_CONFIDENCE_KEYPOINT = 0.5  # keypoints above this count toward pose confidence

# Geometry
SPINE_REFERENCE_OFFSET = 0.5  # synthetic point below the hip midpoint (normalized units)
SITTING_HIP_KNEE_GAP = 0.2  # |avg hip y - avg knee y| below this means sitting

# Scoring - component weights in percent (0.25/0.25/0.30/0.20, sum to 100)
COMPONENT_WEIGHTS = MappingProxyType({
    "head": 25,
    "shoulders": 25,
    "spine": 30,
    "hips": 20,
})

# Scoring - (max deviation in degrees, score) steps, last entry is the fallback
SCORE_BREAKPOINTS = MappingProxyType({
    "head": ((5, 100), (10, 90), (15, 80), (20, 70), (30, 50), (None, 30)),
    "shoulders": ((5, 100), (10, 90), (20, 75), (30, 60), (None, 40)),
    "spine": ((5, 100), (10, 85), (15, 70), (25, 50), (None, 30)),
    "hips": ((10, 100), (20, 85), (30, 70), (40, 55), (None, 40)),
})

_SITTING_OPTIMAL = MappingProxyType({
    "neck_angle": 15.0,
    "shoulder_angle": 90.0,
    "spine_angle": 95.0,
    "hip_angle": 90.0,
    "knee_angle": 90.0,
})

_UPRIGHT_OPTIMAL = MappingProxyType({
    "neck_angle": 0.0,
    "shoulder_angle": 180.0,
    "spine_angle": 180.0,
    "hip_angle": 180.0,
    "knee_angle": 180.0,
})

DEFAULT_OPTIMAL_ANGLES = MappingProxyType({
    PostureType.SITTING: _SITTING_OPTIMAL,
    PostureType.STANDING: _UPRIGHT_OPTIMAL,
    PostureType.EXERCISING: _UPRIGHT_OPTIMAL,
    PostureType.UNKNOWN: _UPRIGHT_OPTIMAL,
})

# Improvement
IMPROVEMENT_REFERENCE_SCORE = 70
TREND_WINDOW = 10  # scores considered by the trend calculation

# Issue Detection - angle rules (forward head, slouching)
DEFAULT_OPTIMAL_NECK_ANGLE = 15.0
DEFAULT_OPTIMAL_SPINE_ANGLE = 95.0
ANGLE_ISSUE_TRIGGER = 10.0
ANGLE_SEVERITY_BANDS = ((25.0, IssueSeverity.SEVERE), (15.0, IssueSeverity.MODERATE))

# Issue Detection - keypoint offset rules (rounded shoulders, uneven pairs)
OFFSET_ISSUE_TRIGGER = 0.05
OFFSET_SEVERITY_BANDS = ((0.1, IssueSeverity.SEVERE), (0.07, IssueSeverity.MODERATE))

# Threshold filter cut-offs
MODERATE_PASS_THRESHOLD = 0.5
ALL_PASS_THRESHOLD = 0.3

# Issue Prioritization
SEVERITY_ORDER = MappingProxyType({
    IssueSeverity.SEVERE: 0,
    IssueSeverity.MODERATE: 1,
    IssueSeverity.MILD: 2,
})

ISSUE_PRIORITY = MappingProxyType({
    PostureIssueType.SLOUCHING: 0,
    PostureIssueType.FORWARD_HEAD: 1,
    PostureIssueType.ROUNDED_SHOULDERS: 2,
    PostureIssueType.UNEVEN_SHOULDERS: 3,
    PostureIssueType.UNEVEN_HIPS: 4,
    PostureIssueType.EXCESSIVE_LORDOSIS: 5,
    PostureIssueType.EXCESSIVE_KYPHOSIS: 6,
})

# Issue Rules - user facing text per issue kind
ISSUE_RULES = MappingProxyType({
    PostureIssueType.FORWARD_HEAD: {
        "body_part": "head and neck",
        "description": "Your head is positioned too far forward",
        "recommendation": "Pull your chin back and align your ears over your shoulders",
    },
    PostureIssueType.ROUNDED_SHOULDERS: {
        "body_part": "shoulders",
        "description": "Your shoulders are rounded forward",
        "recommendation": "Roll your shoulders back and down, opening your chest",
    },
    PostureIssueType.SLOUCHING: {
        "body_part": "spine",
        "description": "You are slouching - your spine is not properly aligned",
        "recommendation": "Sit up straight, engage your core, and maintain the natural curve of your spine",
    },
    PostureIssueType.UNEVEN_HIPS: {
        "body_part": "hips",
        "description": "Your hips are uneven",
        "recommendation": "Ensure equal weight distribution and check your sitting position",
    },
    PostureIssueType.UNEVEN_SHOULDERS: {
        "body_part": "shoulders",
        "description": "Your shoulders are uneven",
        "recommendation": "Relax your shoulders and ensure they are level",
    },
})
