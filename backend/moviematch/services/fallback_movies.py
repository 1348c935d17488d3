"""Bundled catalog served when the movie API is unreachable or unconfigured."""
from typing import List

from moviematch.models import Movie

FALLBACK_IMAGE_BASE_URL = 'https://image.tmdb.org/t/p/w1280'

# (title, poster path, release year, rating, runtime in minutes)
FALLBACK_CATALOG = [
    ("In the Mood for Love", "/iYypPT4bhqXfq1b6EnmxvRt6b2Y.jpg", "2000", 8.1, 99),
    ("Scenes from a Marriage", "/ArKEdvJesIktFX8OAhcdKAOLl6I.jpg", "1974", 8.1, 169),
    ("Yi Yi", "/mR8dSQZI8X6Z1NClJhFrtJp636z.jpg", "2000", 7.9, 174),
    ("The Zone of Interest", "/hUu9zyZmDd8VZegKi1iK1Vk0RYS.jpg", "2023", 7, 105),
    ("I'm Still Here", "/gZnsMbhCvhzAQlKaVpeFRHYjGyb.jpg", "2024", 8, 138),
    ("A Taxi Driver", "/iXVaWbxmyPk4KZGZk5GGDGFieMX.jpg", "2017", 8.1, 138),
    ("The Worst Person in the World", "/1NxGNQchGBTHXJ6RShLY1IlZqWn.jpg", "2021", 7.5, 128),
    ("Roman Holiday", "/8lI9dmz1RH20FAqltkGelY1v4BE.jpg", "1953", 7.9, 119),
    ("Past Lives", "/rzO71VFu7CpJMfF5TQNMj0d1lSV.jpg", "2023", 7.7, 106),
    ("Moonrise Kingdom", "/y4SXcbNl6CEF2t36icuzuBioj7K.jpg", "2012", 7.7, 94),
    ("Hotel Pacific", "/kdk7Kf7RQ49XxhBOuTLpFxvTmCI.jpg", "1975", 7.4, 94),
    ("Exhuma", "/6dasJ58GGFcC62H9KuukAryltUp.jpg", "2024", 7.6, 134),
    ("The Elephant Man", "/rk2lKgEtjF9HO9N2UFMRc2cMGdj.jpg", "1980", 8, 124),
    ("Notting Hill", "/k7cwPG5sVmCumxKZCukyu3SbyjG.jpg", "1999", 7.3, 124),
    ("Fallen Leaves", "/9ayYOpeqHhxfHHUoyt3kXzznECO.jpg", "2023", 7.2, 81),
    ("CURE!", "/aAyedPK8t4XLyetDlRTm9AJIP80.jpg", "2020", 6, 23),
    ("Knives Out", "/pThyQovXQrw2m0s9x82twj48Jq4.jpg", "2019", 7.8, 131),
    ("Eternal Sunshine of the Spotless Mind", "/5MwkWH9tYHv3mV9OdYTMR5qreIz.jpg", "2004", 8.1, 108),
    ("Primer", "/xEoq2WmDzpzxhkHEsmOYOg6BPg6.jpg", "2004", 6.8, 77),
    ("There Will Be Blood", "/nuZDiX8okojcwkStdaMjA9LUQAT.jpg", "2007", 8.1, 158),
    ("The Grand Budapest Hotel", "/eWdyYQreja6JGCzqHWXpWHDrrPo.jpg", "2014", 8, 100),
    ("Memories of Murder", "/jcgUjx1QcupGzjntTVlnQ15lHqy.jpg", "2003", 8.1, 131),
    ("American Psycho", "/9uGHEgsiUXjCNq8wdq4r49YL8A1.jpg", "2000", 7.4, 102),
    ("A Brighter Summer Day", "/3l8fOAwiN3N5n3hHnZ51eog7Zu2.jpg", "1991", 8.3, 237),
    ("Corner Office", "/2JOPMnpaaTBvhy0HCby9uSBkt11.jpg", "2023", 6.6, 102),
    ("The Tale of The Princess Kaguya", "/mWRQNlWXYYfd2z4FRm99MsgHgiA.jpg", "2013", 8.1, 137),
    ("Princess Mononoke", "/cMYCDADoLKLbB83g4WnJegaZimC.jpg", "1997", 8.3, 134),
    ("Fantasia", "/5m9njnidjR0syG2gpVPVgcEMB2X.jpg", "1940", 7.4, 124),
    ("The Triplets of Belleville", "/enw6C4fDw88g0nOQgIJXjgH3NHi.jpg", "2003", 7.4, 80),
    ("Conclave", "/m5x8D0bZ3eKqIVWZ5y7TnZ2oTVg.jpg", "2024", 7.2, 120),
    ("Mickey 17", "/edKpE9B5qN3e559OuMCLZdW1iBZ.jpg", "2025", 7, 137),
    ("Independence Day", "/p0BPQGSPoSa8Ml0DAf2mB2kCU0R.jpg", "1996", 6.9, 145),
    ("Sound of Metal", "/3178oOJKKPDeQ2legWQvMPpllv.jpg", "2020", 7.7, 120),
    ("Soul", "/hm58Jw4Lw8OIeECIq5qyPYhAeRJ.jpg", "2020", 8.1, 101),
    ("District 9", "/kYkK0KIBygtYQzBpjMgQyya4Re7.jpg", "2009", 7.4, 112),
    ("The Prince of Egypt", "/2xUjYwL6Ol7TLJPPKs7sYW5PWLX.jpg", "1998", 7.3, 99),
]


def get_fallback_movies(count: int = len(FALLBACK_CATALOG)) -> List[Movie]:
    """Return up to `count` fallback movies with ids m1..mN."""
    movies = []
    for index, (title, poster_path, year, rating, duration) in enumerate(FALLBACK_CATALOG[:max(count, 0)]):
        movies.append(Movie(
            id=f"m{index + 1}",
            title=title,
            image_url=f"{FALLBACK_IMAGE_BASE_URL}{poster_path}",
            release_year=year,
            rating=rating,
            duration=duration,
        ))
    return movies
