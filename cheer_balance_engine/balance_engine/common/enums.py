# cheer_balance_engine/balance_engine/common/enums.py
from enum import Enum

class JointRole(str, Enum):
    """Anatomical joint roles, independent of any one rig's naming scheme."""
    HIPS = "hips"
    SPINE = "spine"
    CHEST = "chest"
    UPPER_CHEST = "upper_chest"
    NECK = "neck"
    HEAD = "head"
    HEAD_TOP = "head_top"
    RIGHT_CLAVICLE = "right_clavicle"
    RIGHT_SHOULDER = "right_shoulder"
    RIGHT_ELBOW = "right_elbow"
    RIGHT_WRIST = "right_wrist"
    LEFT_CLAVICLE = "left_clavicle"
    LEFT_SHOULDER = "left_shoulder"
    LEFT_ELBOW = "left_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_HIP = "right_hip"
    RIGHT_KNEE = "right_knee"
    RIGHT_ANKLE = "right_ankle"
    RIGHT_TOE = "right_toe"
    LEFT_HIP = "left_hip"
    LEFT_KNEE = "left_knee"
    LEFT_ANKLE = "left_ankle"
    LEFT_TOE = "left_toe"

class BalanceState(str, Enum):
    """Per-frame state of the stability pipeline."""
    NO_SUPPORT = "NO_SUPPORT"
    STABLE = "STABLE"
    UNSTABLE = "UNSTABLE"

class BalanceStatus(str, Enum):
    """Presentation-level classification of a stability result."""
    GOOD = "GOOD"
    NEAR_EDGE = "NEAR_EDGE"
    UNSTABLE = "UNSTABLE"
    UNKNOWN = "UNKNOWN"

class LogLevel(str, Enum):
    """Defines logging levels accepted in config.yaml."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
