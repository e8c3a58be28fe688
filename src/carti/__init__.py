"""carti: manage content bundles and compose Cartesi machines from them."""
