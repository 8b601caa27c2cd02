"""Expected-value math and pick ranking."""
