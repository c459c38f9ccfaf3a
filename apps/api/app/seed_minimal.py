from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlmodel import Session, select

from .db import init_db, get_engine
from .models import Movie, ParentalGuide, Rating, utcnow

logger = logging.getLogger("tonight.seed")

G = {
    "action": {"id": 28, "name": "Action"},
    "adventure": {"id": 12, "name": "Adventure"},
    "animation": {"id": 16, "name": "Animation"},
    "comedy": {"id": 35, "name": "Comedy"},
    "crime": {"id": 80, "name": "Crime"},
    "drama": {"id": 18, "name": "Drama"},
    "family": {"id": 10751, "name": "Family"},
    "horror": {"id": 27, "name": "Horror"},
    "mystery": {"id": 9648, "name": "Mystery"},
    "romance": {"id": 10749, "name": "Romance"},
    "scifi": {"id": 878, "name": "Science Fiction"},
    "thriller": {"id": 53, "name": "Thriller"},
}

# Streaming provider ids as TMDB reports them
NETFLIX, PRIME, DISNEY, MAX = 8, 9, 337, 1899

MOVIES = [
    {"id": 9001, "title": "Cozy Bakery", "genres": ["comedy", "family"], "runtime": 94, "certification": "PG",
     "release_date": date(2019, 6, 14), "vote_average": 7.1, "vote_count": 820, "popularity": 41.0, "providers": [NETFLIX],
     "guide": {"violence": "None", "sex_nudity": "None", "profanity": "Mild", "substances": "None", "frightening": "None"}},
    {"id": 9002, "title": "Harbor Lights", "genres": ["mystery", "drama"], "runtime": 118, "certification": "PG-13",
     "release_date": date(2015, 3, 6), "vote_average": 7.6, "vote_count": 2300, "popularity": 55.5, "providers": [PRIME],
     "guide": {"violence": "Moderate", "sex_nudity": "Mild", "profanity": "Moderate", "substances": "Mild", "frightening": "Moderate"}},
    {"id": 9003, "title": "Orbit Siblings", "genres": ["scifi", "family", "adventure"], "runtime": 102, "certification": "PG",
     "release_date": date(2021, 11, 24), "vote_average": 6.8, "vote_count": 1400, "popularity": 63.2, "providers": [DISNEY],
     "guide": {"violence": "Mild", "sex_nudity": "None", "profanity": "None", "substances": "None", "frightening": "Mild"}},
    {"id": 9004, "title": "Noir Notes", "genres": ["thriller", "crime"], "runtime": 131, "certification": "R",
     "release_date": date(1998, 9, 18), "vote_average": 7.9, "vote_count": 5100, "popularity": 38.4, "providers": [MAX],
     "guide": {"violence": "Severe", "sex_nudity": "Moderate", "profanity": "Severe", "substances": "Moderate", "frightening": "Moderate"}},
    {"id": 9005, "title": "The Long Winter", "genres": ["horror"], "runtime": 99, "certification": "R",
     "release_date": date(1982, 6, 25), "vote_average": 8.1, "vote_count": 6200, "popularity": 47.9, "providers": [PRIME],
     "guide": {"violence": "Severe", "sex_nudity": "Mild", "profanity": "Severe", "substances": "Mild", "frightening": "Severe"}},
    {"id": 9006, "title": "Paper Hearts", "genres": ["romance", "comedy"], "runtime": 105, "certification": "PG-13",
     "release_date": date(2004, 2, 13), "vote_average": 6.4, "vote_count": 950, "popularity": 22.1, "providers": [NETFLIX, PRIME]},
    {"id": 9007, "title": "Rebound", "genres": ["comedy"], "runtime": 88, "certification": "PG-13",
     "release_date": date(2012, 8, 3), "vote_average": 5.9, "vote_count": 640, "popularity": 18.7, "providers": [NETFLIX]},
    {"id": 9008, "title": "Little Robot", "genres": ["animation", "family", "comedy"], "runtime": 86, "certification": "G",
     "release_date": date(2008, 6, 27), "vote_average": 8.0, "vote_count": 17000, "popularity": 70.3, "providers": [DISNEY],
     "guide": {"violence": "Mild", "sex_nudity": "None", "profanity": "None", "substances": "None", "frightening": "Mild"}},
    {"id": 9009, "title": "Iron Pursuit", "genres": ["action", "thriller"], "runtime": 124, "certification": "PG-13",
     "release_date": date(2017, 5, 5), "vote_average": 6.6, "vote_count": 3100, "popularity": 58.0, "providers": [MAX, PRIME]},
    {"id": 9010, "title": "Iron Pursuit 2", "genres": ["action", "thriller"], "runtime": 129, "certification": "PG-13",
     "release_date": date(2020, 7, 10), "vote_average": 6.2, "vote_count": 2200, "popularity": 52.6, "providers": [MAX]},
    {"id": 9011, "title": "Quiet Stars", "genres": ["drama"], "runtime": 142, "certification": "PG",
     "release_date": date(1957, 10, 4), "vote_average": 8.3, "vote_count": 2900, "popularity": 12.4, "providers": []},
    {"id": 9012, "title": "Midnight Diner", "genres": ["drama", "comedy"], "runtime": None, "certification": None,
     "release_date": date(2023, 1, 20), "vote_average": None, "vote_count": 3, "popularity": 4.2, "providers": [NETFLIX]},
]

RATINGS = [
    ("alex", 9001, 88), ("alex", 9003, 76), ("alex", 9008, 95), ("alex", 9006, 61),
    ("sam", 9002, 82), ("sam", 9004, 90), ("sam", 9008, 70), ("sam", 9009, 64),
    ("jordan", 9005, 92), ("jordan", 9004, 71), ("jordan", 9002, 67),
]


def seed_minimal(engine=None) -> None:
    init_db(engine)
    engine = engine or get_engine()
    now = utcnow()
    with Session(engine) as session:
        for row in MOVIES:
            movie = session.get(Movie, row["id"])
            if movie is None:
                movie = Movie(
                    id=row["id"],
                    title=row["title"],
                    overview=f"{row['title']} (demo catalog)",
                    release_date=row["release_date"],
                    runtime=row["runtime"],
                    certification=row["certification"],
                    vote_average=row["vote_average"],
                    vote_count=row["vote_count"],
                    popularity=row["popularity"],
                    genres=[G[g] for g in row["genres"]],
                    provider_ids=list(row["providers"]),
                )
                session.add(movie)
            guide = row.get("guide")
            if guide and session.get(ParentalGuide, row["id"]) is None:
                session.add(ParentalGuide(movie_id=row["id"], **guide))
        session.flush()

        for i, (member, movie_id, score) in enumerate(RATINGS):
            existing = session.exec(
                select(Rating).where(Rating.member_id == member, Rating.movie_id == movie_id)
            ).first()
            if existing is None:
                session.add(Rating(member_id=member, movie_id=movie_id, score=score, rated_at=now - timedelta(days=len(RATINGS) - i)))
        session.commit()
    logger.info("seed_minimal", extra={"movies": len(MOVIES), "ratings": len(RATINGS)})


if __name__ == "__main__":
    seed_minimal()
