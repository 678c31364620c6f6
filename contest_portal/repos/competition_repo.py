from contest_portal.data.models.competition import CompetitionModel, RegistrationTypeModel
from contest_portal.repos.base import BaseRepo


class CompetitionRepo(BaseRepo):
    def get_competition(self, competition_id: int) -> CompetitionModel | None:
        return self.db.get(CompetitionModel, competition_id)

    def get_registration_type(self, registration_type_id: int) -> RegistrationTypeModel | None:
        return self.db.get(RegistrationTypeModel, registration_type_id)
