# cheer_balance_engine/main.py
import cv2
import os
import time
import logging
import yaml
import numpy as np
from collections import deque

from balance_engine.common.enums import JointRole, LogLevel
from balance_engine.common.geometry import Vector3
from balance_engine.processing.balance_processor import BalanceProcessor
from balance_engine.rig.skeleton_rig import SkeletonRig
from balance_engine.scheduling.recompute_scheduler import IntervalTickSource, RecomputeScheduler
from balance_engine.visualization.visualizer import Visualizer

logger = logging.getLogger("cheer_balance_engine")

def apply_sway(rig: SkeletonRig, demo: dict, elapsed: float):
    """Tilts the whole body about the hips so the COM drifts across the base of support."""
    amplitude = np.radians(demo['sway_amplitude_deg'])
    angle = amplitude * np.sin(2 * np.pi * elapsed / demo['sway_period_s'])
    rig.set_joint_local_rotation(rig.name_map.name(JointRole.HIPS), Vector3(x=angle))

def toggle_liberty(rig: SkeletonRig, raised: bool):
    """Raises the right leg sideways, or lowers it back."""
    name = rig.name_map.name(JointRole.RIGHT_HIP)
    rig.set_joint_local_rotation(name, Vector3(z=0.0 if raised else -np.pi / 2))
    return not raised

def run_headless(config: dict, rig: SkeletonRig, scheduler: RecomputeScheduler):
    """Runs the tick source on its own thread and logs balance transitions."""
    demo = config['demo']
    scheduler.subscribe(lambda frame: logger.debug(
        "frame %d: %s COM=(%.1f, %.1f, %.1f)", frame.frame_id, frame.state.value,
        frame.com.x, frame.com.y, frame.com.z))

    with IntervalTickSource(scheduler, config['scheduler']['tick_hz']):
        start = time.perf_counter()
        elapsed = 0.0
        while elapsed < demo['headless_duration_s']:
            if demo['sway']:
                apply_sway(rig, demo, elapsed)
            time.sleep(0.005)
            elapsed = time.perf_counter() - start
    logger.info("Scheduler stats: %s", scheduler.get_stats())

def run_interactive(config: dict, rig: SkeletonRig, scheduler: RecomputeScheduler):
    """The main-thread loop: it is both the tick source and the display."""
    demo = config['demo']
    visualizer = Visualizer(config['visualization'], config['stability']['warning_margin'])
    scheduler.subscribe(visualizer.update)

    tick_interval = 1.0 / config['scheduler']['tick_hz']
    fps_history = deque(maxlen=100)
    liberty = False
    start = time.perf_counter()

    while True:
        frame_start_time = time.perf_counter()

        if demo['sway']:
            apply_sway(rig, demo, frame_start_time - start)

        # --- Core Processing Pipeline ---
        scheduler.tick()

        # --- Visualization ---
        avg_fps = np.mean(fps_history) if fps_history else 0
        output_frame = visualizer.render(scheduler.latest_frame, rig.snapshot(), avg_fps)
        cv2.imshow('Cheer Balance Engine', output_frame)

        key = cv2.waitKey(max(1, int((tick_interval - (time.perf_counter() - frame_start_time)) * 1000))) & 0xFF
        if key == ord('q'):
            logger.info("Shutdown signal received.")
            break
        elif key == ord('r'):
            liberty = False
            rig.reset_pose()
        elif key == ord('l'):
            liberty = toggle_liberty(rig, liberty)
        elif key == ord('v'):
            shown = visualizer.toggle_overlay()
            logger.info("Balance overlay %s.", "shown" if shown else "hidden")

        latency = time.perf_counter() - frame_start_time
        fps_history.append(1.0 / latency if latency > 0 else 0)

    logger.info("Scheduler stats: %s", scheduler.get_stats())

def main():
    """
    The balance engine application loop.
    Loads configuration, wires rig -> scheduler -> processor -> visualizer and runs.
    """
    script_dir = os.path.dirname(os.path.abspath(__file__))
    config_path = os.path.join(script_dir, 'config.yaml')

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        print(f"ERROR: Configuration file '{config_path}' not found.")
        return
    except yaml.YAMLError as e:
        print(f"ERROR: Failed to parse configuration file '{config_path}'. {e}")
        return

    try:
        level = LogLevel(config.get('logging', {}).get('level', LogLevel.INFO.value))
        logging.basicConfig(level=level.value, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

        processor = BalanceProcessor(config)
        rig = SkeletonRig(processor.name_map)
        scheduler = RecomputeScheduler(processor, rig.snapshot)
        rig.add_change_listener(scheduler.mark_dirty)
        scheduler.mark_dirty()

        if config['visualization']['enabled']:
            run_interactive(config, rig, scheduler)
        else:
            run_headless(config, rig, scheduler)

    except (KeyError, ValueError) as e:
        logger.error("Invalid configuration in '%s': %s", config_path, e)
    except Exception as e:
        logger.exception("An unexpected critical error occurred: %s", e)
    finally:
        cv2.destroyAllWindows()
        logger.info("Application terminated.")

if __name__ == "__main__":
    main()
