"""clk2 command-line client."""
