"""Domain layer: the local network descriptor and on-chain reconciliation."""
