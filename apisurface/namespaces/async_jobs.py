"""async namespace — launch/poll convention shared by long-running routes.

A launching route returns a subtype of LaunchResultBase: either the finished
result (``complete``) or an ``async_job_id``. The paired ``.../check`` route
takes a PollArg and returns a subtype of PollResultBase: ``in_progress``,
``complete`` or ``failed``.
"""

from pydantic import Field

from apisurface.decorators.core import declare_namespace, struct, union
from apisurface.engine.types import String, Struct, Tag, Union

NAMESPACE = "async"

declare_namespace(NAMESPACE, doc="Types for asynchronous job launch and polling.")

AsyncJobId = String


@union
class LaunchResultBase(Union, closed=True):
    """
    Result returned by methods that launch an asynchronous job.

    A method who may either launch an asynchronous job, or complete the
    request synchronously, can use this union by extending it, and adding a
    'complete' field with the type of the synchronous response.
    """

    async_job_id = Tag(AsyncJobId, doc="This response indicates that the processing is asynchronous. "
                                       "The string is an id that can be used to obtain the status "
                                       "of the asynchronous job.")


@union
class LaunchEmptyResult(LaunchResultBase):
    """Result returned by methods that may either launch an asynchronous job or complete synchronously."""

    complete = Tag(doc="The job finished synchronously and successfully.")


@struct
class PollArg(Struct):
    """Arguments for methods that poll the status of an asynchronous job."""

    async_job_id: AsyncJobId = Field(
        min_length=1,
        description="Id of the asynchronous job. This is the value of a response "
                    "returned from the method that launched the job.",
    )


@union
class PollResultBase(Union, closed=True):
    """
    Result returned by methods that poll for the status of an asynchronous job.

    Unions that extend this union should add a 'complete' field with a type
    of the information returned upon job completion.
    """

    in_progress = Tag(doc="The asynchronous job is still in progress.")


@union
class PollEmptyResult(PollResultBase):
    """Result returned by methods that poll for the status of an asynchronous job."""

    complete = Tag(doc="The asynchronous job has completed successfully.")


@union
class PollError(Union):
    """Error returned by methods for polling the status of asynchronous job."""

    invalid_async_job_id = Tag(doc="The job ID is invalid.")
    internal_error = Tag(doc="Something went wrong with the job on Dropbox's end. "
                             "You'll need to verify that the action you were taking "
                             "succeeded, and if not, try again. This should happen very rarely.")
