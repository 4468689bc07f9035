"""Typed replies with pydantic models.

The model is forced to answer through a function whose parameters are the
model's fields, and the arguments are validated into the pydantic class.

Run: python examples/01_fundamentals/05_structured_output.py
"""

import asyncio
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from stepwise.llm import ChatModel, HumanMessage, ModelConfig, SystemMessage
from stepwise.utils import configure_logging, load_env

load_env()
configure_logging()


class City(BaseModel):
    """Facts about a city."""

    name: str = Field(description="The name of the city")
    country: str = Field(description="The country where the city is located")
    population: int = Field(description="Approximate population")
    is_capital: bool = Field(description="Whether it is the capital city")


class Movie(BaseModel):
    title: str = Field(description="Movie title")
    year: int = Field(description="Release year")
    director: str = Field(description="Director name")
    rating: float = Field(description="Rating out of 10")
    sequel: Optional[str] = Field(description="Name of sequel, if any")
    budget: Optional[float] = Field(description="Budget in millions USD, if known")


class Recipe(BaseModel):
    name: str = Field(description="Recipe name")
    prep_time: int = Field(description="Preparation time in minutes")
    ingredients: List[str] = Field(description="List of ingredients")
    steps: List[str] = Field(description="Cooking steps in order")
    difficulty: Literal["easy", "medium", "hard"] = Field(description="Difficulty level")


class Actor(BaseModel):
    name: str = Field(description="Actor's full name")
    role: str = Field(description="Character name in the movie")


class MovieDetails(BaseModel):
    title: str = Field(description="Movie title")
    year: int = Field(description="Release year")
    director: str = Field(description="Director's name")
    cast: List[Actor] = Field(description="Main cast members")
    genres: List[str] = Field(description="Movie genres")


class Sentiment(BaseModel):
    text: str = Field(description="The analyzed text")
    sentiment: Literal["positive", "negative", "neutral"] = Field(description="Overall sentiment")
    confidence: float = Field(ge=0, le=1, description="Confidence score 0-1")
    emotions: List[Literal["joy", "sadness", "anger", "fear", "surprise", "disgust"]] = Field(
        description="Detected emotions"
    )


class Contact(BaseModel):
    name: str = Field(description="Person's full name")
    email: Optional[str] = Field(description="Email address if found")
    phone: Optional[str] = Field(description="Phone number if found")
    company: Optional[str] = Field(description="Company name if mentioned")
    role: Optional[str] = Field(description="Job title/role if mentioned")


class Answer(BaseModel):
    answer: str = Field(description="The answer to the question")
    confidence: int = Field(description="Confidence level 0-100")


def header(title: str):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


async def main():
    config = ModelConfig(model="gpt-4.1-mini")
    model = ChatModel(config, client=config.create_client())

    header("DEMO 1: Simple Schema")
    city = await model.with_structured_output(City).ainvoke([HumanMessage("Tell me about Tokyo")])
    print(f"  City: {city.name}")
    print(f"  Country: {city.country}")
    print(f"  Population: {city.population:,}")
    print(f"  Is Capital: {city.is_capital}")

    header("DEMO 2: Optional Fields")
    movie = await model.with_structured_output(Movie).ainvoke("Tell me about the movie Inception")
    print(movie.model_dump_json(indent=2))
    print(f"\nSequel: {movie.sequel or 'No sequel'}")

    header("DEMO 3: Lists and Enums")
    recipe = await model.with_structured_output(Recipe).ainvoke(
        "Give me a simple pasta carbonara recipe"
    )
    print(f"Recipe: {recipe.name} ({recipe.prep_time} minutes, {recipe.difficulty})")
    for i, ingredient in enumerate(recipe.ingredients, start=1):
        print(f"  {i}. {ingredient}")

    header("DEMO 4: Nested Objects")
    details = await model.with_structured_output(MovieDetails).ainvoke(
        "Give me details about The Dark Knight movie"
    )
    print(f"{details.title} ({details.year}) by {details.director}")
    print(f"Genres: {', '.join(details.genres)}")
    for actor in details.cast:
        print(f"  - {actor.name} as {actor.role}")

    header("DEMO 5: Classification")
    classifier = model.with_structured_output(Sentiment)
    for text in (
        "I absolutely love this product! Best purchase ever!",
        "The service was terrible and I want a refund.",
        "The package arrived on time.",
    ):
        result = await classifier.ainvoke(
            [SystemMessage("Analyze the sentiment of the given text."), HumanMessage(text)]
        )
        print(f'Text: "{text[:40]}..."')
        print(f"  Sentiment: {result.sentiment} ({result.confidence * 100:.0f}%)")
        print(f"  Emotions: {', '.join(result.emotions) or 'none'}")

    header("DEMO 6: Data Extraction")
    contact = await model.with_structured_output(Contact).ainvoke(
        [
            SystemMessage("Extract contact information from the text."),
            HumanMessage(
                "Hi, my name is Sarah Johnson and I work as a Senior Developer at TechCorp Inc. "
                "You can reach me at sarah.johnson@techcorp.com or call me at (555) 123-4567."
            ),
        ]
    )
    for label, value in contact.model_dump().items():
        print(f"  {label}: {value or 'Not found'}")

    header("DEMO 7: Including the Raw Response")
    result = await model.with_structured_output(Answer, include_raw=True).ainvoke("What is 2 + 2?")
    print(f"Parsed data: {result.parsed}")
    print(f"  Model: {result.raw.response_metadata.get('model', 'N/A')}")
    if result.raw.usage:
        print(f"  Input tokens: {result.raw.usage.input_tokens}")
        print(f"  Output tokens: {result.raw.usage.output_tokens}")


if __name__ == "__main__":
    asyncio.run(main())
