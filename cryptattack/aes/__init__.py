from .detect import detect_ecb, find_ecb_candidates
