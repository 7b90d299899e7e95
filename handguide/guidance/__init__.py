from .controller import GuidanceState, GuidanceConfig, GuidanceController, weighted_hand_distance, required_tolerance
