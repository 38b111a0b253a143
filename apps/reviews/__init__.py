"""Vehicle reviews: one rating per completed rental."""
