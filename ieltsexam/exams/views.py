"""
Exams API views
Test content (admin-authored), attempts, answers and grading endpoints
"""
from django.contrib.auth import get_user_model
from django.db.models import Count
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
import logging

from accounts.permissions import IsAdmin, IsAdminOrReadOnly
from ieltsexam.exceptions import NotFoundError, ValidationError
from .models import Test, Passage, Question, Attempt, MODULE_CHOICES
from .serializers import (
    TestSerializer,
    PassageSerializer,
    QuestionSerializer,
    AttemptSerializer,
    AnswerSerializer,
    AttemptCreateSerializer,
    AttemptStatusSerializer,
    AnswerSubmitSerializer,
    SpeakingAudioSerializer,
    AnswerUpdateSerializer,
    ModuleSerializer,
    TranslateSerializer,
)
from .services.ai_scoring import AIScoringClient
from .services.answer_scoring import AnswerScoringService
from .services.attempts import AttemptService
from .services.question_import import QuestionImportService

logger = logging.getLogger(__name__)

UUID_PATTERN = '[0-9a-fA-F-]{36}'


def _validated(serializer_class, data):
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise ValidationError('Invalid request data', fields=serializer.errors)
    return serializer


def _is_admin(request):
    return request.user.is_authenticated and request.user.is_admin


class TestViewSet(viewsets.ModelViewSet):
    """
    Tests are readable by every signed-in user (active ones only for test
    takers) and writable by admins.
    """
    serializer_class = TestSerializer
    permission_classes = [IsAdminOrReadOnly]
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        queryset = Test.objects.all()
        if not _is_admin(self.request):
            queryset = queryset.filter(active=True)
        module = self.request.query_params.get('module')
        if module:
            queryset = queryset.filter(module=module)
        return queryset

    def perform_create(self, serializer):
        test = serializer.save()
        logger.info(f"Admin {self.request.user.id} created test {test.id} ({test.module})")

    def perform_destroy(self, instance):
        logger.info(f"Admin {self.request.user.id} deleted test {instance.id}")
        instance.delete()

    @action(detail=False, methods=['get'], url_path='module/(?P<module>[a-z]+)')
    def by_module(self, request, module=None):
        """GET /api/tests/module/<module>/"""
        _validated(ModuleSerializer, {'module': module})
        tests = self.get_queryset().filter(module=module)
        return Response(self.get_serializer(tests, many=True).data)

    @action(detail=True, methods=['get'])
    def questions(self, request, pk=None):
        """GET /api/tests/<id>/questions/ - answer keys are hidden from test takers"""
        test = self.get_object()
        serializer = QuestionSerializer(
            test.questions.all(), many=True, context={'reveal_answers': _is_admin(request)}
        )
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def passages(self, request, pk=None):
        """GET /api/tests/<id>/passages/"""
        test = self.get_object()
        return Response(PassageSerializer(test.passages.all(), many=True).data)

    @action(detail=True, methods=['get'], permission_classes=[IsAdmin])
    def attempts(self, request, pk=None):
        """GET /api/tests/<id>/attempts/ (admin)"""
        test = self.get_object()
        return Response(AttemptSerializer(AttemptService.list_for_test(test.id), many=True).data)

    @action(
        detail=True,
        methods=['post'],
        permission_classes=[IsAdmin],
        parser_classes=[MultiPartParser, FormParser],
        url_path='bulk-upload-questions',
    )
    def bulk_upload_questions(self, request, pk=None):
        """
        POST /api/tests/<id>/bulk-upload-questions/
        multipart: file = .csv | .xlsx | .json
        """
        test = self.get_object()
        upload = request.FILES.get('file')
        if not upload:
            raise ValidationError('No file provided', fields={'file': ['This field is required.']})

        created = QuestionImportService.import_questions(test, upload)
        return Response({
            'count': len(created),
            'message': f'{len(created)} questions imported successfully',
            'questions': QuestionSerializer(created, many=True, context={'reveal_answers': True}).data,
        }, status=status.HTTP_201_CREATED)


class PassageViewSet(viewsets.ModelViewSet):
    serializer_class = PassageSerializer
    permission_classes = [IsAdminOrReadOnly]
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        queryset = Passage.objects.select_related('test')
        if not _is_admin(self.request):
            queryset = queryset.filter(test__active=True)
        test_id = self.request.query_params.get('testId')
        if test_id:
            queryset = queryset.filter(test_id=test_id)
        return queryset


class QuestionViewSet(viewsets.ModelViewSet):
    serializer_class = QuestionSerializer
    permission_classes = [IsAdminOrReadOnly]
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        queryset = Question.objects.select_related('test')
        if not _is_admin(self.request):
            queryset = queryset.filter(test__active=True)
        test_id = self.request.query_params.get('testId')
        if test_id:
            queryset = queryset.filter(test_id=test_id)
        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['reveal_answers'] = _is_admin(self.request)
        return context


class AttemptViewSet(viewsets.ViewSet):
    """
    POST   /api/attempts/                     start an attempt
    GET    /api/attempts/active/?testId=      active attempt with timeRemaining
    GET    /api/attempts/user/                current user's attempts
    GET    /api/attempts/<id>/                one attempt
    PATCH  /api/attempts/<id>/status/         status transition
    GET    /api/attempts/<id>/answers/        answers so far
    POST   /api/attempts/<id>/answers/        record an answer
    POST   /api/attempts/<id>/speaking-audio/ upload and transcribe a recording
    """
    permission_classes = [IsAuthenticated]
    lookup_value_regex = UUID_PATTERN

    def create(self, request):
        serializer = _validated(AttemptCreateSerializer, request.data)
        attempt = AttemptService.create(request.user, serializer.validated_data['testId'])
        attempt.time_remaining = attempt.test.duration_seconds
        return Response(AttemptSerializer(attempt).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        attempt = AttemptService.get(request.user, pk)
        return Response(AttemptSerializer(attempt).data)

    @action(detail=False, methods=['get'])
    def active(self, request):
        test_id = request.query_params.get('testId')
        if test_id:
            test_id = _validated(AttemptCreateSerializer, {'testId': test_id}).validated_data['testId']
        attempt = AttemptService.get_active(request.user, test_id)
        if attempt is None:
            raise NotFoundError('No active attempt')
        return Response(AttemptSerializer(attempt).data)

    @action(detail=False, methods=['get'])
    def user(self, request):
        attempts = AttemptService.list_for_user(request.user)
        return Response(AttemptSerializer(attempts, many=True).data)

    @action(detail=True, methods=['patch'], url_path='status')
    def update_status(self, request, pk=None):
        serializer = _validated(AttemptStatusSerializer, request.data)
        data = serializer.validated_data
        attempt = AttemptService.update_status(
            request.user,
            pk,
            data['status'],
            end_time=data.get('endTime'),
            score=data.get('score'),
        )
        return Response(AttemptSerializer(attempt).data)

    @action(detail=True, methods=['get', 'post'])
    def answers(self, request, pk=None):
        if request.method == 'GET':
            answers = AttemptService.answers(request.user, pk)
            return Response(AnswerSerializer(answers, many=True).data)

        serializer = _validated(AnswerSubmitSerializer, request.data)
        data = serializer.validated_data
        answer = AttemptService.record_answer(
            request.user,
            pk,
            data['questionId'],
            data['answer'],
            audio_path=data.get('audioPath') or None,
        )
        return Response(AnswerSerializer(answer).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=['post'],
        url_path='speaking-audio',
        parser_classes=[MultiPartParser, FormParser],
    )
    def speaking_audio(self, request, pk=None):
        serializer = _validated(SpeakingAudioSerializer, request.data)
        data = serializer.validated_data
        answer = AttemptService.record_speaking_audio(request.user, pk, data['questionId'], data['audio'])
        return Response(AnswerSerializer(answer).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH'])
@permission_classes([IsAdmin])
def update_answer(request, answer_id):
    """
    PATCH /api/answers/<id>/
    Body: {isCorrect?, score?, feedback?} - at least one field
    """
    serializer = _validated(AnswerUpdateSerializer, request.data)
    answer = AnswerScoringService.update_answer(request.user, answer_id, serializer.changes())
    return Response(AnswerSerializer(answer).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ai_score_answer(request, answer_id):
    """
    POST /api/answers/<id>/ai-score/
    200 with the scored answer, or 202 when queued for the scoring worker
    """
    answer, queued = AnswerScoringService.request_ai_score(request.user, answer_id)
    code = status.HTTP_202_ACCEPTED if queued else status.HTTP_200_OK
    return Response(AnswerSerializer(answer).data, status=code)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def translate_to_arabic(request):
    """
    POST /api/translate/to-arabic/
    Body: {text} -> {translation}
    """
    return _translate(request, 'ar')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def translate_to_english(request):
    """
    POST /api/translate/to-english/
    Body: {text} -> {translation}
    """
    return _translate(request, 'en')


def _translate(request, target):
    text = _validated(TranslateSerializer, request.data).validated_data['text']
    translation = AIScoringClient().translate(text, target)
    logger.info(f"Translated {len(text)} characters to {target} for user {request.user.id}")
    return Response({'translation': translation})


@api_view(['GET'])
@permission_classes([IsAdmin])
def admin_stats(request):
    """
    GET /api/admin/stats/
    Dashboard counts: users, tests and attempts per module
    """
    tests_by_module = dict(Test.objects.values_list('module').annotate(total=Count('id')))
    attempts_by_module = dict(Attempt.objects.values_list('test__module').annotate(total=Count('id')))
    completed_by_module = dict(
        Attempt.objects.filter(status='completed').values_list('test__module').annotate(total=Count('id'))
    )

    modules = {}
    for module, _ in MODULE_CHOICES:
        modules[module] = {
            'tests': tests_by_module.get(module, 0),
            'attempts': attempts_by_module.get(module, 0),
            'completedAttempts': completed_by_module.get(module, 0),
        }

    return Response({
        'totalUsers': get_user_model().objects.count(),
        'totalTests': Test.objects.count(),
        'activeTests': Test.objects.filter(active=True).count(),
        'totalAttempts': Attempt.objects.count(),
        'modules': modules,
    })
