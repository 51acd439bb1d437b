# cheer_balance_engine/balance_engine/processing/balance_processor.py
import logging
import time
from typing import Optional
from ..common.enums import BalanceState
from ..common.models import BalanceFrame, JointSnapshot
from ..common.skeleton import JointNameMap
from .com_estimator import COMEstimator
from .segment_highlighter import DEFAULT_EXCLUDE_PATTERNS, find_most_unstable_segment, highlight_segments
from .stability_analyzer import analyze_stability
from .support_polygon import build_support_polygon

logger = logging.getLogger(__name__)

class BalanceProcessor:
    """Runs the COM -> support polygon -> stability -> highlight pass for one snapshot."""

    def __init__(self, config: dict):
        self.config = config
        self.name_map = JointNameMap.from_config(config.get('skeleton', {}))
        self.estimator = COMEstimator.from_config(config.get('body', {}), self.name_map)
        self.exclude_patterns = tuple(config.get('highlight', {}).get('exclude_patterns', DEFAULT_EXCLUDE_PATTERNS))
        self.state = BalanceState.NO_SUPPORT
        self._frame_id = 0

    def process_snapshot(self, snapshot: JointSnapshot, timestamp: Optional[float] = None) -> BalanceFrame:
        """Processes a single joint snapshot into a balance frame."""
        start_time = time.perf_counter()
        if timestamp is None:
            timestamp = start_time
        self._frame_id += 1

        com = self.estimator.estimate(snapshot)
        polygon = build_support_polygon(snapshot, self.name_map)

        stability = None
        highlighted_joint = None
        highlighted = ()
        if polygon is None:
            state = BalanceState.NO_SUPPORT
        else:
            stability = analyze_stability(com, polygon)
            if stability.is_stable:
                state = BalanceState.STABLE
            else:
                state = BalanceState.UNSTABLE
                highlighted_joint = find_most_unstable_segment(com, polygon.center, snapshot, self.exclude_patterns)
                highlighted = highlight_segments(highlighted_joint, self.name_map)

        if state != self.state:
            logger.info("Balance state %s -> %s", self.state.value, state.value)
            self.state = state

        return BalanceFrame(
            frame_id=self._frame_id,
            timestamp=timestamp,
            processing_time_ms=(time.perf_counter() - start_time) * 1000,
            state=state,
            com=com,
            polygon=polygon,
            stability=stability,
            highlighted_joint=highlighted_joint,
            highlighted_segments=highlighted,
        )
