"""HTTP surface: webhook ingress, group listing and health."""
