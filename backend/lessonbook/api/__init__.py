"""HTTP-layer helpers shared by the routers."""
