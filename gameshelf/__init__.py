"""GameShelf - personal game collection catalogue"""
