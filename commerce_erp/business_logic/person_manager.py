# commerce_erp/business_logic/person_manager.py

from typing import Optional, List
from commerce_erp.business_logic.entities.person_entity import PersonEntity
from commerce_erp.business_logic.exceptions import ValidationError, NotFoundError
from commerce_erp.data_access.persons_repository import PersonsRepository
from commerce_erp.constants import PersonType
import logging

logger = logging.getLogger(__name__)

class PersonManager:
    def __init__(self, persons_repository: PersonsRepository):
        """
        Initializes the PersonManager with a PersonsRepository.
        :param persons_repository: An instance of PersonsRepository.
        """
        if persons_repository is None:
            raise ValueError("persons_repository cannot be None")
        self.persons_repository = persons_repository

    def add_person(self, name: str, person_type: PersonType, email: Optional[str] = None,
                   phone: Optional[str] = None, address: Optional[str] = None) -> PersonEntity:
        """
        Adds a new customer or supplier.
        Validates input and then uses the repository to save the person.
        """
        if not name or not isinstance(name, str) or not name.strip():
            logger.error("Person name cannot be empty.")
            raise ValidationError("Name is required.")
        if not isinstance(person_type, PersonType):
            logger.error(f"Invalid person_type: {person_type}")
            raise ValidationError("Invalid person type.")

        person_entity = PersonEntity(name=name.strip(), person_type=person_type,
                                     email=email, phone=phone, address=address)
        try:
            created_person = self.persons_repository.add(person_entity)
        except Exception as e:
            logger.error(f"Error adding person '{name}': {e}", exc_info=True)
            raise
        logger.info(f"Person '{created_person.name}' (ID: {created_person.id}) added as {person_type.value}.")
        return created_person

    def update_person(self, person_id: int, **changes) -> PersonEntity:
        person = self.require_person(person_id)
        for key in ("name", "email", "phone", "address", "is_active"):
            if key in changes:
                setattr(person, key, changes[key])
        if not person.name or not str(person.name).strip():
            raise ValidationError("Name is required.")
        self.persons_repository.update(person)
        logger.info(f"Person ID {person_id} updated.")
        return person

    def deactivate_person(self, person_id: int) -> PersonEntity:
        return self.update_person(person_id, is_active=False)

    def get_person_by_id(self, person_id: int) -> Optional[PersonEntity]:
        """Retrieves a person by their ID."""
        if not isinstance(person_id, int) or person_id <= 0:
            logger.error(f"Invalid person_id: {person_id}")
            return None

        person = self.persons_repository.get_by_id(person_id)
        if person:
            logger.debug(f"Person with ID {person_id} found: {person.name}")
        else:
            logger.debug(f"Person with ID {person_id} not found.")
        return person

    def require_person(self, person_id: int, person_type: Optional[PersonType] = None) -> PersonEntity:
        """Like get_person_by_id, but raises when the person is missing or of the wrong type."""
        person = self.get_person_by_id(person_id)
        label = person_type.value if person_type else "person"
        if person is None:
            logger.warning(f"{label} with ID {person_id} not found.")
            raise NotFoundError(f"{label.capitalize()} with ID {person_id} not found.")
        if person_type is not None and person.person_type != person_type:
            raise ValidationError(f"Person ID {person_id} is not a {person_type.value}.")
        return person

    def get_all_persons(self) -> List[PersonEntity]:
        """Retrieves all persons."""
        return self.persons_repository.get_all(order_by="name")

    def get_persons_by_type(self, person_type: PersonType, active_only: bool = False) -> List[PersonEntity]:
        """Retrieves all persons of a specific type."""
        if not isinstance(person_type, PersonType):
            raise ValidationError(f"Invalid person type: {person_type}")
        return self.persons_repository.get_by_type(person_type, active_only=active_only)
