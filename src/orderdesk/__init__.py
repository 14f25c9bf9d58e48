"""OrderDesk: order lifecycle engine with live tracking."""
