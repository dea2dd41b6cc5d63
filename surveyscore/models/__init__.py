from surveyscore.models.assessment import Assessment, Section, Question, Option
from surveyscore.models.response import Response, Answer
