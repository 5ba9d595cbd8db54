from .engine import NegotiationEngine, NegotiationState, negotiation_state

__all__ = ["NegotiationEngine", "NegotiationState", "negotiation_state"]
