"""
Community board feed and voting.

Scores are the sum of vote values per target; ``user_vote`` is the caller's
own vote (0 when anonymous or not voted).
"""

import logging
from collections import defaultdict

from django.db import transaction
from django.db.models import Q, Sum
from rest_framework.exceptions import NotFound

from .models import CommunityPost, CommunityReply, CommunityVote

logger = logging.getLogger(__name__)


class FeedContext:
    """
    Vote totals and the caller's votes for the targets being rendered.

    With no ids the whole board is loaded (the feed); otherwise only votes on
    the given posts and replies are read.
    """

    def __init__(self, user=None, post_ids=None, reply_ids=None):
        self.user_id = user.id if user is not None and user.is_authenticated else None

        votes = CommunityVote.objects.order_by()
        if post_ids is not None or reply_ids is not None:
            votes = votes.filter(
                Q(target_type=CommunityVote.POST, target_id__in=post_ids or [])
                | Q(target_type=CommunityVote.REPLY, target_id__in=reply_ids or [])
            )

        self.totals = {
            (row['target_type'], row['target_id']): row['total']
            for row in votes.values('target_type', 'target_id').annotate(total=Sum('value'))
        }
        self.user_votes = {}
        if self.user_id is not None:
            self.user_votes = {
                (target_type, target_id): value
                for target_type, target_id, value in votes.filter(user_id=self.user_id).values_list(
                    'target_type', 'target_id', 'value'
                )
            }

    def score(self, target_type, target_id):
        return self.totals.get((target_type, target_id), 0)

    def user_vote(self, target_type, target_id):
        return self.user_votes.get((target_type, target_id), 0)


def _author_fields(author):
    return {
        'author_id': author.id,
        'author_role': author.role or 'FAN',
        'author_name': author.display_name,
    }


def reply_view(reply, context):
    data = {
        'id': reply.id,
        'post_id': reply.post_id,
        'content': reply.content,
        'created_at': reply.created_at,
        'updated_at': reply.updated_at,
        'score': context.score(CommunityVote.REPLY, reply.id),
        'user_vote': context.user_vote(CommunityVote.REPLY, reply.id),
    }
    data.update(_author_fields(reply.author))
    return data


def post_view(post, context, replies=None):
    if replies is None:
        replies = list(post.replies.select_related('author'))
    reply_views = [reply_view(reply, context) for reply in replies]
    data = {
        'id': post.id,
        'title': post.title,
        'content': post.content,
        'created_at': post.created_at,
        'updated_at': post.updated_at,
        'score': context.score(CommunityVote.POST, post.id),
        'user_vote': context.user_vote(CommunityVote.POST, post.id),
        'reply_count': len(reply_views),
        'replies': reply_views,
    }
    data.update(_author_fields(post.author))
    return data


def build_feed(user=None):
    """
    All posts with nested replies, highest score first, newest first on ties.
    """
    context = FeedContext(user)

    replies_by_post = defaultdict(list)
    for reply in CommunityReply.objects.select_related('author').order_by('created_at', 'id'):
        replies_by_post[reply.post_id].append(reply)

    views = [
        post_view(post, context, replies_by_post.get(post.id, []))
        for post in CommunityPost.objects.select_related('author')
    ]
    # Posts arrive newest first; the stable sort keeps that order within a score
    views.sort(key=lambda view: view['score'], reverse=True)
    return views


def build_post_view(post_id, user=None):
    try:
        post = CommunityPost.objects.select_related('author').get(pk=post_id)
    except CommunityPost.DoesNotExist:
        raise NotFound('Post not found.')
    replies = list(post.replies.select_related('author'))
    context = FeedContext(user, post_ids=[post.id], reply_ids=[reply.id for reply in replies])
    return post_view(post, context, replies)


def build_reply_view(reply_id, user=None):
    try:
        reply = CommunityReply.objects.select_related('author').get(pk=reply_id)
    except CommunityReply.DoesNotExist:
        raise NotFound('Reply not found.')
    return reply_view(reply, FeedContext(user, reply_ids=[reply.id]))


def set_vote(user, target_type, target_id, value):
    """
    Record, change or clear (value 0) the user's vote on a post or reply.

    Raises:
        NotFound: Target post or reply does not exist
    """
    model = CommunityPost if target_type == CommunityVote.POST else CommunityReply
    if not model.objects.filter(pk=target_id).exists():
        raise NotFound(f'{"Post" if model is CommunityPost else "Reply"} not found.')

    with transaction.atomic():
        if value == 0:
            CommunityVote.objects.filter(
                user=user, target_type=target_type, target_id=target_id
            ).delete()
        else:
            CommunityVote.objects.update_or_create(
                user=user,
                target_type=target_type,
                target_id=target_id,
                defaults={'value': value},
            )

    logger.info(
        f"Community vote set. User ID: {user.id}, Target: {target_type} {target_id}, Value: {value}"
    )
