from __future__ import annotations

DEFAULT_CATEGORY = "Animals"

WORD_CATEGORIES: dict[str, list[str]] = {
    "Animals": [
        "Elephant", "Giraffe", "Penguin", "Dolphin", "Kangaroo", "Octopus",
        "Owl", "Crocodile", "Zebra", "Hedgehog", "Flamingo", "Wolf",
    ],
    "Food": [
        "Pizza", "Sushi", "Taco", "Pancake", "Lasagna", "Popcorn",
        "Croissant", "Burrito", "Paella", "Ice cream", "Omelette", "Curry",
    ],
    "Places": [
        "Beach", "Airport", "Hospital", "Library", "Museum", "Casino",
        "Stadium", "Supermarket", "Cinema", "Volcano", "Prison", "School",
    ],
    "Objects": [
        "Umbrella", "Toothbrush", "Guitar", "Ladder", "Candle", "Mirror",
        "Backpack", "Scissors", "Telescope", "Pillow", "Compass", "Hammer",
    ],
    "Professions": [
        "Firefighter", "Dentist", "Pilot", "Chef", "Astronaut", "Plumber",
        "Detective", "Farmer", "Lawyer", "Magician", "Librarian", "Surgeon",
    ],
    "Sports": [
        "Football", "Tennis", "Surfing", "Boxing", "Skiing", "Volleyball",
        "Golf", "Fencing", "Rowing", "Archery", "Cycling", "Climbing",
    ],
}


def words_for(category: str | None) -> list[str]:
    """Word list for a category; unknown categories fall back to the default one."""
    return WORD_CATEGORIES.get(category or DEFAULT_CATEGORY) or WORD_CATEGORIES[DEFAULT_CATEGORY]
