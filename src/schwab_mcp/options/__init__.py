"""
Option spread search over normalized chains.

OptionChainFilter pairs short and long legs inside one expiration; the strategy
module ranks the candidates into a single vertical or an iron condor.
"""
