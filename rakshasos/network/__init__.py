"""network — Connectivity signal → reachability classification."""
