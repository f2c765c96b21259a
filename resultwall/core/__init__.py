"""Core services: announcement sequencing, asset readiness, change feed, analytics."""
from resultwall.core.asset_gate import AssetReadinessGate
from resultwall.core.change_feed import ChangeFeedPoller
from resultwall.core.sequencer import Sequencer, SequencerConfig

__all__ = ["AssetReadinessGate", "ChangeFeedPoller", "Sequencer", "SequencerConfig"]
