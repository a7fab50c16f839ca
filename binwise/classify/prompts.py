"""
Classifier Prompts - Instruction text sent with the captured frame.

The instruction pins the exact verdict phrases so the presenter's
marker matching has something stable to look for. Whether a location
is real is left to the model; the prompt only tells it what to say
when it is not.
"""

from dataclasses import dataclass

AFFIRMATIVE_PHRASE = "Yes, this is recyclable!"
NEGATIVE_PHRASE = "No, this isn't recyclable."
LOCATION_NOT_FOUND_MESSAGE = "This location does not exist. Please enter a valid location."


@dataclass(frozen=True)
class RecyclingPrompts:
    """
    Prompt templates for the recycling verdict.

    template is formatted with {location}, {affirmative},
    {negative} and {not_found}.
    """
    template: str = (
        "The user is in {location}. "
        "Identify the object in the image and whether it can go in a recycling bin "
        "based on {location}'s recycling regulations. "
        'Respond simply with "This is a (object)" and either "{affirmative}" or "{negative}", '
        "followed by one short explanation of why it is or is not recyclable, "
        "written for a middle-school reader. "
        "If {location} is not a real place, ignore the image and every instruction above "
        'and respond only with "{not_found}"'
    )
    affirmative: str = AFFIRMATIVE_PHRASE
    negative: str = NEGATIVE_PHRASE
    not_found: str = LOCATION_NOT_FOUND_MESSAGE

    def instruction(self, location: str) -> str:
        """Instruction text for one request."""
        return self.template.format(
            location=location,
            affirmative=self.affirmative,
            negative=self.negative,
            not_found=self.not_found,
        )
