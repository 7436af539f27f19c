"""
Static pincode reference tables used for zone derivation.

Postal circles are keyed by the first two pincode digits; metro and
remoteness sets by the first three. Loaded once at import, read-only.
"""
from types import MappingProxyType

_STATE_BY_PREFIX = {
    "11": "Delhi",
    "12": "Haryana",           "13": "Haryana",
    "14": "Punjab",            "15": "Punjab",          "16": "Chandigarh",
    "17": "Himachal Pradesh",
    "18": "Jammu & Kashmir",   "19": "Jammu & Kashmir",
    "20": "Uttar Pradesh",     "21": "Uttar Pradesh",   "22": "Uttar Pradesh",
    "23": "Uttar Pradesh",     "24": "Uttar Pradesh",   "25": "Uttar Pradesh",
    "26": "Uttar Pradesh",     "27": "Uttar Pradesh",   "28": "Uttar Pradesh",
    "30": "Rajasthan",         "31": "Rajasthan",       "32": "Rajasthan",
    "33": "Rajasthan",         "34": "Rajasthan",
    "36": "Gujarat",           "37": "Gujarat",         "38": "Gujarat",         "39": "Gujarat",
    "40": "Maharashtra",       "41": "Maharashtra",     "42": "Maharashtra",
    "43": "Maharashtra",       "44": "Maharashtra",
    "45": "Madhya Pradesh",    "46": "Madhya Pradesh",  "47": "Madhya Pradesh",  "48": "Madhya Pradesh",
    "49": "Chhattisgarh",
    "50": "Telangana",
    "51": "Andhra Pradesh",    "52": "Andhra Pradesh",  "53": "Andhra Pradesh",
    "56": "Karnataka",         "57": "Karnataka",       "58": "Karnataka",       "59": "Karnataka",
    "60": "Tamil Nadu",        "61": "Tamil Nadu",      "62": "Tamil Nadu",
    "63": "Tamil Nadu",        "64": "Tamil Nadu",
    "67": "Kerala",            "68": "Kerala",          "69": "Kerala",
    "70": "West Bengal",       "71": "West Bengal",     "72": "West Bengal",
    "73": "West Bengal",       "74": "West Bengal",
    "75": "Odisha",            "76": "Odisha",          "77": "Odisha",
    "78": "Assam",
    "79": "North East",
    "80": "Bihar",             "81": "Bihar",           "84": "Bihar",           "85": "Bihar",
    "82": "Jharkhand",         "83": "Jharkhand",
}

STATE_BY_PREFIX = MappingProxyType(_STATE_BY_PREFIX)

METRO_PREFIXES = frozenset({
    "110",  # Delhi
    "400",  # Mumbai
    "560",  # Bengaluru
    "600",  # Chennai
    "700",  # Kolkata
    "500",  # Hyderabad
    "411",  # Pune
    "380",  # Ahmedabad
})

DIFFICULT_TERRAIN_PREFIXES = frozenset({
    # Jammu & Kashmir
    "180", "181", "182", "184", "185", "190", "191", "192", "193",
    # Himachal Pradesh
    "171", "172", "173", "174", "175", "176", "177",
    # Uttarakhand hills
    "246", "249", "262", "263",
    # Assam
    "781", "782", "783", "784", "785", "786", "787", "788",
    # Meghalaya, Nagaland, Tripura
    "793", "794", "797", "798", "799",
    # Sikkim
    "737",
})

EXTREME_REMOTE_PREFIXES = frozenset({
    "744",                  # Andaman & Nicobar
    "194",                  # Ladakh
    "790", "791", "792",    # Arunachal Pradesh
    "795",                  # Manipur
    "796",                  # Mizoram
})
