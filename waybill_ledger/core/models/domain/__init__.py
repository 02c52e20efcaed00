"""Domain rules: enums, fuel calculation, seasons and the waybill status machine."""
